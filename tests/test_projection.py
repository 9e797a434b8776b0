"""Tests for sekundebrain.projection."""

from sekundebrain.projection import (
    ALL_FOLDERS,
    EntryProjection,
    folder_choices,
    matches_tag_filter,
    project_entries,
    sort_entries,
)


def _ids(entries):
    return [e.id for e in entries]


class TestSorting:
    def test_pinned_group_split(self, make_entry):
        d1 = make_entry(1, days_ago=0, pinned=False)
        d2 = make_entry(2, days_ago=1, pinned=True)
        d3 = make_entry(3, days_ago=2, pinned=False)

        view = project_entries([d3, d1, d2], [])

        assert _ids(view.pinned) == [2]
        assert _ids(view.unpinned) == [1, 3]

    def test_most_recent_first_within_group(self, make_entry):
        entries = [make_entry(i, days_ago=i, pinned=True) for i in (3, 1, 2)]
        assert _ids(project_entries(entries, []).pinned) == [1, 2, 3]

    def test_equal_dates_keep_input_order(self, make_entry):
        a, b = make_entry(1), make_entry(2)
        assert _ids(sort_entries([a, b])) == [1, 2]
        assert _ids(sort_entries([b, a])) == [2, 1]

    def test_entries_property_and_len(self, make_entry):
        view = project_entries([make_entry(1), make_entry(2, days_ago=1, pinned=True)], [])
        assert _ids(view.entries) == [2, 1]
        assert len(view) == 2

    def test_empty(self):
        view = project_entries([], [])
        assert view == EntryProjection()
        assert len(view) == 0


class TestTagFilter:
    def test_substring_case_insensitive(self, make_entry):
        entry = make_entry(1, tags=["Happy", "Work"])
        assert _ids(project_entries([entry], [], filter_text="app").entries) == [1]
        assert _ids(project_entries([entry], [], filter_text="WORK").entries) == [1]

    def test_excluded(self, make_entry):
        entry = make_entry(1, tags=["Happy", "Work"])
        assert project_entries([entry], [], filter_text="sad").entries == []

    def test_title_and_content_not_searched(self, make_entry):
        entry = make_entry(1, title="sad day", tags=["ok"])
        entry.content = "very sad"
        assert not matches_tag_filter(entry, "sad")

    def test_untagged_entries_hidden_by_filter(self, make_entry):
        assert project_entries([make_entry(1)], [], filter_text="x").entries == []

    def test_empty_filter_keeps_all(self, make_entry):
        entries = [make_entry(1), make_entry(2, tags=["a"])]
        assert len(project_entries(entries, [], filter_text="")) == 2


class TestFolderFilter:
    def test_selected_folder(self, make_entry, work_folder, home_folder):
        entries = [
            make_entry(1, folder=work_folder),
            make_entry(2, days_ago=1, folder=home_folder),
            make_entry(3, days_ago=2),
        ]
        folders = [work_folder, home_folder]

        assert _ids(project_entries(entries, folders, selected_folder=work_folder).entries) == [1]
        assert _ids(project_entries(entries, folders, selected_folder=home_folder.id).entries) == [2]

    def test_all_folders(self, make_entry, work_folder):
        entries = [make_entry(1, folder=work_folder), make_entry(2, days_ago=1)]
        assert _ids(project_entries(entries, [work_folder], selected_folder=None).entries) == [1, 2]

    def test_combined_with_tag_filter(self, make_entry, work_folder):
        entries = [
            make_entry(1, tags=["calm"], folder=work_folder),
            make_entry(2, days_ago=1, tags=["tired"], folder=work_folder),
            make_entry(3, days_ago=2, tags=["calm"]),
        ]
        view = project_entries(entries, [work_folder], filter_text="calm", selected_folder=work_folder)
        assert _ids(view.entries) == [1]

    def test_selection_outside_folder_list_still_filters(self, make_entry, work_folder, home_folder):
        entries = [make_entry(1, folder=home_folder), make_entry(2, days_ago=1)]
        assert _ids(project_entries(entries, [home_folder], selected_folder=work_folder).entries) == []
        assert _ids(project_entries(entries, [], selected_folder=work_folder.id).entries) == []


class TestFolderChoices:
    def test_all_folders_first_then_by_name(self, work_folder, home_folder):
        assert folder_choices([work_folder, home_folder]) == [
            (ALL_FOLDERS, None),
            ("Home", home_folder.id),
            ("Work", work_folder.id),
        ]
