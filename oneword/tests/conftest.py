# oneword/tests/conftest.py
import asyncio
from pathlib import Path

import pytest

from oneword.db_pg import create_all, make_engine, make_sessionmaker
from oneword.models import Word

DATA_NOUN = """\
  1 This software and database is being provided to you, the LICENSEE, by
  2 Princeton University under the following license.
00001740 03 n 01 entity 0 003 ~ 00001930 n 0000 ~ 00002137 n 0000 ~ 04431553 n 0000 | that which is perceived or known or inferred to have its own distinct existence (living or nonliving)
00001930 03 n 01 physical_entity 0 001 @ 00001740 n 0000 | an entity that has physical existence
00002137 03 n 02 abstraction 0 abstract_entity 0 002 @ 00001740 n 0000 ~ 05835747 n 0000 | a general concept formed by extracting common features from specific examples
05835747 09 n 02 concept 0 conception 0 002 @ 00002137 n 0000 ~ 05835747 n 0000 | an abstract or general idea inferred or derived from specific instances
05900000 09 n 01 concept 0 000 | a plan or design; "the concept of the new building"
06000000 04 n 01 teaching 0 002 @ 00002137 n 0000 | the activities of educating or instructing
this line is not a synset
10000000 18 n 01 Einstein 0 000 | physicist born in Germany
"""

DATA_VERB = """\
  1 This software and database is being provided to you, the LICENSEE, by
00200000 30 v 01 ameliorate 0 001 ^ 00600000 v 0000 01 + 08 00 | to make better; "The editor improved the manuscript"
00600000 32 v 01 teach 0 001 + 06000000 n 0101 01 + 08 00 | impart skills or knowledge to; "I taught them French"; "He instructed me in building a boat"
"""

DATA_ADJ = """\
00001740 00 a 01 able 0 001 ! 00002098 a 0101 | (usually followed by `to') having the necessary means or skill; "able to swim"
"""

INDEX_SENSE = """\
concept%1:09:00:: 05835747 2 5
concept%1:09:01:: 05900000 1 12
entity%1:03:00:: 00001740 1 11
teach%2:32:00:: 00600000 1 31
"""


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'oneword.db'}")
    run(create_all(engine))
    yield make_sessionmaker(engine)
    run(engine.dispose())


@pytest.fixture
def dict_dir(tmp_path) -> Path:
    d = tmp_path / "dict"
    d.mkdir()
    (d / "data.noun").write_text(DATA_NOUN, encoding="utf-8")
    (d / "data.verb").write_text(DATA_VERB, encoding="utf-8")
    (d / "data.adj").write_text(DATA_ADJ, encoding="utf-8")
    (d / "index.sense").write_text(INDEX_SENSE, encoding="utf-8")
    return d


def add_words(session_factory, *rows):
    """rows: dicts of Word column values; eligibility defaults to eligible-word. Returns ids by word."""
    async def _add():
        async with session_factory() as session:
            words = [Word(**{"eligibility": "eligible-word", "polysemy": 1, **row}) for row in rows]
            session.add_all(words)
            await session.commit()
            return {w.word: w.id for w in words}

    return run(_add())
