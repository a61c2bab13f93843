import pytest

from snippet_dedup.deduplication.similarity import (
    SimilarityScorer, edit_distance, string_similarity, CONTENT_WEIGHT, NAME_WEIGHT
)
from snippet_dedup.exceptions import InvalidRecordError


@pytest.fixture
def scorer():
    return SimilarityScorer()


class TestEditDistance:

    @pytest.mark.parametrize("str1, str2, expected", [
        ("", "", 0),
        ("abc", "", 3),
        ("", "abc", 3),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("hello world", "hello world!", 1),
        ("abc", "xyz", 3),
        ("same", "same", 0),
    ])
    def test_known_distances(self, str1, str2, expected):
        assert edit_distance(str1, str2) == expected

    def test_argument_order_does_not_matter(self):
        assert edit_distance("intention", "execution") == edit_distance("execution", "intention") == 5


class TestStringSimilarity:

    def test_both_empty_is_identical(self):
        assert string_similarity("", "") == 1.0

    def test_one_empty_is_zero(self):
        assert string_similarity("abc", "") == 0.0

    def test_one_extra_character(self):
        assert string_similarity("hello world", "hello world!") == pytest.approx(11 / 12)

    def test_completely_different(self):
        assert string_similarity("abc", "xyz") == 0.0


class TestSimilarityScorer:

    def test_weights_are_fixed(self):
        assert CONTENT_WEIGHT == 0.8
        assert NAME_WEIGHT == 0.2

    def test_reflexive(self, scorer, make_record):
        record = make_record(1, "Some Content", name="Name")
        assert scorer.score(record, record).weighted == 1.0

    def test_reflexive_for_empty_record(self, scorer, make_record):
        record = make_record(1)
        assert scorer.score(record, record).weighted == 1.0

    def test_case_insensitive(self, scorer, make_record):
        score = scorer.score(make_record(1, "HELLO", name="Greeting"), make_record(2, "hello", name="greeting"))
        assert score.content_similarity == 1.0
        assert score.name_similarity == 1.0
        assert score.weighted == 1.0

    def test_weighted_combination(self, scorer, make_record):
        score = scorer.score(make_record(1, "Hello World", name="abc"), make_record(2, "Hello World!", name="xyz"))
        assert score.content_similarity == pytest.approx(11 / 12)
        assert score.name_similarity == 0.0
        assert score.weighted == pytest.approx(0.8 * 11 / 12)
        assert score.record_a_id == 1
        assert score.record_b_id == 2

    def test_symmetric(self, scorer, data_generator):
        records = data_generator.generate_corpus(size=12)
        for a in records:
            for b in records:
                assert scorer.score(a, b).weighted == scorer.score(b, a).weighted

    def test_bounded(self, scorer, data_generator):
        records = data_generator.generate_corpus(size=12)
        for a in records:
            for b in records:
                assert 0.0 <= scorer.score(a, b).weighted <= 1.0

    def test_deterministic(self, scorer, make_record):
        a = make_record(1, "docker run --rm", name="run")
        b = make_record(2, "docker run -it", name="run it")
        assert scorer.score(a, b) == scorer.score(a, b)

    def test_missing_record_rejected(self, scorer, make_record):
        with pytest.raises(InvalidRecordError):
            scorer.score(make_record(1, "x"), None)

    def test_similarity_shortcut(self, scorer, hello_records):
        assert scorer.similarity(*hello_records) == scorer.score(*hello_records).weighted


class TestSimilarityStats:

    def test_not_enough_records(self, scorer, make_record):
        stats = scorer.similarity_stats([make_record(1, "only")])
        assert stats['total_records'] == 1
        assert stats['similarity_pairs'] == 0
        assert stats['potential_duplicates'] == 0

    def test_distribution(self, scorer, make_record):
        records = [
            make_record(1, "Hello World", name="greeting"),
            make_record(2, "Hello World!", name="greeting"),
            make_record(3, "abc", name="zzz"),
        ]
        stats = scorer.similarity_stats(records, threshold=0.85)
        assert stats['total_records'] == 3
        assert stats['similarity_pairs'] == 3
        assert stats['potential_duplicates'] == 1
        assert stats['duplication_rate'] == pytest.approx(1 / 3)
        assert stats['max_similarity'] == pytest.approx(0.8 * 11 / 12 + 0.2)
        assert 0.0 <= stats['min_similarity'] <= stats['mean_similarity'] <= stats['max_similarity']
