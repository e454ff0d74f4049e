# oneword/tests/test_relationships.py
from collections import Counter

from oneword.relationships import Relationship, extract_relationships, relationship_type_for
from oneword.wordnet import PointerRecord

VALID = {"n00001740", "n00001930", "n00002137", "a00001740", "n05835747", "r00004000", "a00005000"}


def test_symbol_lookup():
    assert relationship_type_for("@") == "hypernym"
    assert relationship_type_for("@i") == "hypernym"
    assert relationship_type_for("~i") == "hyponym"
    assert relationship_type_for(";c") == "domain_topic"
    assert relationship_type_for("-u") == "member_of_domain_usage"
    assert relationship_type_for("#p") == "part_holonym"
    assert relationship_type_for("&") is None
    assert relationship_type_for("") is None


def test_backslash_depends_on_source_pos():
    assert relationship_type_for("\\", "a") == "pertainym"
    assert relationship_type_for("\\", "r") == "derived_from"


def test_extract_filters_and_counts():
    pointers = [
        PointerRecord("~", "00001930", "n"),
        PointerRecord("~", "00001930", "n"),          # duplicate
        PointerRecord("~", "00001740", "n"),          # self-loop
        PointerRecord("~", "04431553", "n"),          # dangling
        PointerRecord("&", "00002137", "n"),          # unknown
        PointerRecord("+", "00002137", "n", "0101"),
    ]
    drops = Counter()
    rels = extract_relationships(pointers, "n00001740", VALID, drops=drops)

    assert rels == [
        Relationship("n00001740", "n00001930", "hyponym"),
        Relationship("n00001740", "n00002137", "derivationally_related"),
    ]
    assert drops == Counter(duplicate=1, self_loop=1, dangling=1, unknown_symbol=1)


def test_same_pair_different_types_are_kept():
    pointers = [PointerRecord("@", "00002137", "n"), PointerRecord("+", "00002137", "n", "0101")]
    rels = extract_relationships(pointers, "n05835747", VALID)
    assert {r.relationship_type for r in rels} == {"hypernym", "derivationally_related"}


def test_seen_set_dedupes_across_calls():
    seen = set()
    p = [PointerRecord("@", "00001740", "n")]
    assert len(extract_relationships(p, "n00001930", VALID, seen)) == 1
    assert extract_relationships(p, "n00001930", VALID, seen) == []


def test_adverb_derived_from():
    rels = extract_relationships([PointerRecord("\\", "00005000", "a", "0101")], "r00004000", VALID)
    assert rels[0].relationship_type == "derived_from"


def test_no_relationship_is_a_self_loop_or_dangling():
    pointers = [PointerRecord(s, off, pos) for s in ("@", "~", "!") for off, pos in
                (("00001740", "n"), ("00001930", "n"), ("09999999", "n"), ("00001740", "a"))]
    for rel in extract_relationships(pointers, "n00001740", VALID):
        assert rel.from_synset_id != rel.to_synset_id
        assert rel.to_synset_id in VALID
