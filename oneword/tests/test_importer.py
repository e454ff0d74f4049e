# oneword/tests/test_importer.py
from sqlalchemy import func, select

from oneword.importer import import_wordnet
from oneword.models import Relationship, Synset, Word, WordSynset
from oneword.stores import RelationshipStore

from .conftest import run


def count(session_factory, model):
    async def _count():
        async with session_factory() as session:
            return await session.scalar(select(func.count()).select_from(model))
    return run(_count())


def test_import_counts(session_factory, dict_dir):
    summary = run(import_wordnet(session_factory, dict_dir))

    assert summary.synsets == 10
    assert summary.skipped == 1          # "this line is not a synset"
    assert summary.truncated == 1        # teaching: 2 pointers announced, 1 present
    assert summary.relationships == 9
    assert summary.dropped == {"dangling": 2, "self_loop": 1}
    assert summary.failed == 0
    assert count(session_factory, Synset) == 10
    assert count(session_factory, Relationship) == 9


def test_words_links_and_eligibility(session_factory, dict_dir):
    run(import_wordnet(session_factory, dict_dir))

    async def _load():
        async with session_factory() as session:
            words = {w.word: w for w in (await session.execute(select(Word))).scalars()}
            links = (await session.execute(
                select(WordSynset.synset_id, WordSynset.sense_number, WordSynset.tag_count)
                .where(WordSynset.word_id == words["concept"].id)
                .order_by(WordSynset.sense_number)
            )).all()
            return words, links

    words, links = run(_load())
    assert words["concept"].polysemy == 2
    # index.sense ranks the later synset first
    assert [tuple(l) for l in links] == [("n05900000", 1, 12), ("n05835747", 2, 5)]
    assert words["physical entity"].eligibility == "eligible-phrase"
    assert words["einstein"].eligibility == "ineligible"
    assert words["einstein"].eligibility_reason == "proper noun"
    assert words["teach"].pos == "verb"
    assert words["able"].pos == "adjective"


def test_relationship_types(session_factory, dict_dir):
    run(import_wordnet(session_factory, dict_dir))

    async def _rels():
        async with session_factory() as session:
            store = RelationshipStore(session)
            return await store.from_synset("n00001740"), await store.from_synset("v00600000")

    entity, teach = run(_rels())
    assert {(r.to_synset_id, r.relationship_type) for r in entity} == {
        ("n00001930", "hyponym"), ("n00002137", "hyponym"),
    }
    assert [(r.to_synset_id, r.relationship_type) for r in teach] == [("n06000000", "derivationally_related")]


def test_reimport_is_idempotent(session_factory, dict_dir):
    run(import_wordnet(session_factory, dict_dir))
    run(import_wordnet(session_factory, dict_dir))
    assert count(session_factory, Synset) == 10
    assert count(session_factory, Relationship) == 9
    assert count(session_factory, Word) == 11


def test_missing_files_are_skipped(session_factory, tmp_path):
    summary = run(import_wordnet(session_factory, tmp_path))
    assert summary.processed == 0
    assert summary.synsets == 0
