import unittest
from datetime import datetime, timedelta

from recommender import (
    CandidateProfile,
    CollaborativeSignal,
    SimilarTask,
    merge_skills,
    normalize_limit,
    recency_weight,
    recommend,
    score_candidate,
    skill_similarity,
)

NOW = datetime(2025, 6, 1, 12, 0, 0)


def candidate(cid, skills=(), rating=None, completed_jobs=None, relational=()):
    return CandidateProfile(
        id=cid,
        full_name=cid.upper(),
        rating=rating,
        completed_jobs=completed_jobs,
        legacy_skills=tuple(skills),
        relational_skills=tuple(relational),
    )


class SkillSimilarityTests(unittest.TestCase):
    def test_jaccard_on_partial_overlap(self):
        self.assertAlmostEqual(skill_similarity(["A", "B"], ["A", "C"]), 1 / 3)

    def test_empty_target_is_neutral(self):
        self.assertEqual(skill_similarity([], ["A", "C"]), 1.0)
        self.assertEqual(skill_similarity([], []), 1.0)

    def test_disjoint_sets_use_baseline(self):
        self.assertAlmostEqual(skill_similarity(["A"], ["B"]), 0.2)
        self.assertAlmostEqual(skill_similarity(["A"], []), 0.2)

    def test_duplicates_do_not_inflate(self):
        self.assertAlmostEqual(skill_similarity(["A", "A", "B"], ["A", "C"]), 1 / 3)


class RecencyTests(unittest.TestCase):
    def test_ten_days_old(self):
        self.assertAlmostEqual(recency_weight(NOW - timedelta(days=10), NOW), 0.75)

    def test_future_timestamp_clamped(self):
        self.assertEqual(recency_weight(NOW + timedelta(days=3), NOW), 1.0)


class HelperTests(unittest.TestCase):
    def test_normalize_limit(self):
        self.assertEqual(normalize_limit(None), 10)
        self.assertEqual(normalize_limit(0), 10)
        self.assertEqual(normalize_limit(-4), 10)
        self.assertEqual(normalize_limit(3), 3)

    def test_merge_skills_keeps_first_position(self):
        self.assertEqual(merge_skills(["React", "Node"], ["Node", "SQL", "React"]), ["React", "Node", "SQL"])

    def test_signal_normalizes_by_sqrt_interactions(self):
        signal = CollaborativeSignal()
        signal.add("f1", 2.0)
        signal.add("f1", 2.0)
        self.assertTrue(signal.has_signal)
        self.assertAlmostEqual(signal.normalized("f1"), 4.0 / 2 ** 0.5)
        self.assertEqual(signal.normalized("unknown"), 0.0)


class ScoringTests(unittest.TestCase):
    def test_candidate_without_anything_scores_zero(self):
        scored = score_candidate(candidate("f"), ["React"], CollaborativeSignal(), use_collaborative=True)
        self.assertEqual(scored.score, 0)

    def test_stray_zero_entries_do_not_count_as_signal(self):
        signal = CollaborativeSignal(raw_scores={"f": 0.0}, interactions={"f": 2})
        self.assertFalse(signal.has_signal)

    def test_without_signal_only_skill_and_rating_count(self):
        signal = CollaborativeSignal(raw_scores={"f": 5.0}, interactions={"f": 1})
        scored = score_candidate(
            candidate("f", ["React", "SQL"], rating=5.0), ["React", "SQL"], signal, use_collaborative=False
        )
        self.assertAlmostEqual(scored.score, 2 * 2 + 0.4 * 5.0)

    def test_skills_union_of_legacy_and_relational(self):
        scored = score_candidate(
            candidate("f", ["React"], relational=["React", "Node"]),
            ["Node", "React"],
            CollaborativeSignal(),
            use_collaborative=False,
        )
        self.assertEqual(scored.skills, ("React", "Node"))
        self.assertEqual(scored.score, 4.0)


class RecommendTests(unittest.TestCase):
    def test_end_to_end_example(self):
        history = [
            SimilarTask(
                task_id="s1",
                skills=("React", "Node"),
                created_at=NOW - timedelta(days=10),
                application_freelancer_ids=("f1",),
            )
        ]
        pool = [candidate("f1", ["React"], rating=4.0), candidate("f2", ["Node"])]

        ranked = recommend(["React"], history, pool, now=NOW)

        self.assertEqual([c.id for c in ranked], ["f1", "f2"])
        self.assertAlmostEqual(ranked[0].score, 4.725)
        self.assertEqual(ranked[1].score, 0)

    def test_requests_weigh_two_thirds_of_applications(self):
        created = NOW - timedelta(days=0)
        history = [
            SimilarTask("s1", ("React",), created, application_freelancer_ids=("app",)),
            SimilarTask("s2", ("React",), created, request_freelancer_ids=("req",)),
        ]
        ranked = recommend(["React"], history, [candidate("app"), candidate("req")], now=NOW)
        scores = {c.id: c.score for c in ranked}
        self.assertAlmostEqual(scores["app"], 3.0)
        self.assertAlmostEqual(scores["req"], 2.0)

    def test_empty_task_skills_rely_on_collaborative_signal(self):
        history = [
            SimilarTask("s1", ("Go",), NOW, application_freelancer_ids=("f1",)),
        ]
        ranked = recommend([], history, [candidate("f1", ["Go"]), candidate("f2", ["Go"])], now=NOW)
        self.assertEqual(ranked[0].id, "f1")
        self.assertAlmostEqual(ranked[0].score, 3.0)
        self.assertEqual(ranked[1].score, 0)

    def test_ties_broken_by_rating_then_completed_jobs(self):
        pool = [
            candidate("low", ["React"], rating=None, completed_jobs=9),
            candidate("jobs", ["React"], rating=None, completed_jobs=12),
            candidate("first", ["React"]),
            candidate("second", ["React"]),
        ]
        ranked = recommend(["React"], [], pool, now=NOW)
        self.assertEqual([c.id for c in ranked], ["jobs", "low", "first", "second"])

    def test_rating_breaks_ties_when_scores_equal(self):
        # Same total score: 2 overlaps (4.0) vs 1 overlap + rating 5 (2.0 + 2.0).
        pool = [
            candidate("skills", ["A", "B"]),
            candidate("rated", ["A"], rating=5.0),
        ]
        ranked = recommend(["A", "B"], [], pool, now=NOW)
        self.assertEqual([c.id for c in ranked], ["rated", "skills"])

    def test_limit_defaults_and_truncates(self):
        pool = [candidate(f"f{i}", ["React"]) for i in range(15)]
        self.assertEqual(len(recommend(["React"], [], pool, now=NOW)), 10)
        self.assertEqual(len(recommend(["React"], [], pool, limit=0, now=NOW)), 10)
        self.assertEqual(len(recommend(["React"], [], pool, limit=3, now=NOW)), 3)
        self.assertEqual(len(recommend(["React"], [], pool[:4], limit=-1, now=NOW)), 4)

    def test_to_dict_exposes_skills_as_list(self):
        ranked = recommend(["React"], [], [candidate("f1", ["React"])], now=NOW)
        data = ranked[0].to_dict()
        self.assertEqual(data["skills"], ["React"])
        self.assertEqual(data["score"], 2.0)
        self.assertEqual(data["full_name"], "F1")


if __name__ == "__main__":
    unittest.main()
