"""Tests for grouping commits into per-file evolutions."""

from commit_journal.temporal import aggregate, find_evolution


class TestAggregate:
    """Tests for aggregate()."""

    def test_ranks_by_change_count(self, make_commit):
        """x.ts changed twice ranks before y.ts changed once."""
        commits = [
            make_commit("a1", "2024-01-01", "x.ts"),
            make_commit("b2", "2024-01-03", "x.ts"),
            make_commit("c3", "2024-01-02", "y.ts"),
        ]
        evolutions = aggregate(commits)

        assert [e.path for e in evolutions] == ["x.ts", "y.ts"]
        assert evolutions[0].change_count == 2
        assert evolutions[1].change_count == 1

    def test_empty_stream(self):
        assert aggregate([]) == []

    def test_change_count_matches_commit_refs(self, history):
        for evolution in aggregate(history):
            assert evolution.change_count == len(evolution.commits)

    def test_every_touched_path_appears_once(self, history):
        paths = [e.path for e in aggregate(history)]
        assert sorted(paths) == ["x.py", "y.py", "z.py"]

    def test_ties_keep_first_seen_order(self, make_commit):
        commits = [
            make_commit("c1", "2024-01-01", "b.py"),
            make_commit("c2", "2024-01-02", "a.py"),
            make_commit("c3", "2024-01-03", "c.py"),
        ]
        assert [e.path for e in aggregate(commits)] == ["b.py", "a.py", "c.py"]

    def test_authors_deduplicated_in_first_seen_order(self, make_commit):
        commits = [
            make_commit("c1", "2024-01-01", "x.py", author="bob"),
            make_commit("c2", "2024-01-02", "x.py", author="alice"),
            make_commit("c3", "2024-01-03", "x.py", author="bob"),
        ]
        (evolution,) = aggregate(commits)
        assert evolution.authors == ["bob", "alice"]

    def test_last_changed_is_latest_date_regardless_of_input_order(self, make_commit):
        """Newest-first input still reports the newest date."""
        commits = [
            make_commit("c3", "2024-01-03T00:00:00Z", "x.py"),
            make_commit("c1", "2024-01-01T00:00:00Z", "x.py"),
            make_commit("c2", "2024-01-02T00:00:00Z", "x.py"),
        ]
        (evolution,) = aggregate(commits)
        assert evolution.last_changed == "2024-01-03T00:00:00Z"

    def test_last_changed_compares_parsed_timestamps(self, make_commit):
        """Offsets are honoured: 09:00+00:00 is later than 10:00+02:00."""
        commits = [
            make_commit("c1", "2024-01-01T09:00:00+00:00", "x.py"),
            make_commit("c2", "2024-01-01T10:00:00+02:00", "x.py"),
        ]
        (evolution,) = aggregate(commits)
        assert evolution.last_changed == "2024-01-01T09:00:00+00:00"

    def test_commit_refs_carry_per_file_line_counts(self, make_commit):
        (evolution,) = aggregate([make_commit("c1", "2024-01-01", "x.py", message="init")])
        ref = evolution.commits[0]
        assert ref.hash == "c1"
        assert ref.message == "init"
        assert (ref.additions, ref.deletions) == (3, 1)

    def test_commit_touching_many_files_counts_for_each(self, make_commit):
        evolutions = aggregate([make_commit("c1", "2024-01-01", "a.py", "b.py")])
        assert {e.path: e.change_count for e in evolutions} == {"a.py": 1, "b.py": 1}


class TestFindEvolution:
    def test_found(self, history):
        evolutions = aggregate(history)
        assert find_evolution(evolutions, "z.py").change_count == 1

    def test_missing(self, history):
        assert find_evolution(aggregate(history), "nope.py") is None
