import os
from pathlib import Path

import pytest

from eventfinder.auth.users import verify_password
from eventfinder.data_ingestion import config as ingestion_config
from eventfinder.data_ingestion.config import IngestionConfig
from eventfinder.data_ingestion.ingest import load_events, run_ingestion
from eventfinder.store.documents import DocumentStore
from eventfinder.store.models import Role

EVENTS_CSV = """\
id,title,description,location,start_date,capacity,signup_count,signups_open,interests,organiser_id
jazz,Jazz Night,Live quartet,Union Bar,2030-03-01T19:00:00Z,40,12,true,"Music, Jazz",org1
talk,AI Talk,,Lecture Hall,not-a-date,,,,tech,
,,untitled row,,,,,,,
"""

USERS_CSV = """\
id,email,name,role,interests,password
stu,sam@uni.test,Sam,student,"music,art",sam123
org,olu@uni.test,Olu,organiser,,
"""


def _write_seed(tmp_path: Path) -> IngestionConfig:
    (tmp_path / "events.csv").write_text(EVENTS_CSV)
    (tmp_path / "users.csv").write_text(USERS_CSV)
    return IngestionConfig(data_dir=tmp_path)


def test_run_ingestion_loads_both_catalogues(tmp_path: Path):
    store = DocumentStore()
    counts = run_ingestion(store, _write_seed(tmp_path))

    assert counts == {"events": 2, "users": 2}
    assert store.count_events() == 2


def test_event_columns_are_parsed(tmp_path: Path):
    store = DocumentStore()
    run_ingestion(store, _write_seed(tmp_path))

    jazz = store.get_event("jazz")
    assert jazz.interests == ["music", "jazz"]
    assert jazz.capacity == 40
    assert jazz.signup_count == 12
    assert jazz.signups_open is True
    assert jazz.start_date.year == 2030
    assert jazz.start_date.tzinfo is not None
    assert jazz.end_date is None

    talk = store.get_event("talk")
    assert talk.description is None
    assert talk.start_date is None
    assert talk.capacity is None
    assert talk.signup_count == 0
    assert talk.signups_open is True
    assert talk.organiser_id is None


def test_users_get_hashed_passwords(tmp_path: Path):
    store = DocumentStore()
    run_ingestion(store, _write_seed(tmp_path))

    sam = store.find_user_by_email("SAM@uni.test")
    assert sam.role == Role.student
    assert sam.interests == ["music", "art"]
    assert sam.password_hash != "sam123"
    assert verify_password("sam123", sam.password_hash)

    olu = store.get_user("org")
    assert olu.role == Role.organiser
    assert olu.password_hash is None


def test_missing_files_are_skipped(tmp_path: Path):
    counts = run_ingestion(DocumentStore(), IngestionConfig(data_dir=tmp_path / "absent"))
    assert counts == {"events": 0, "users": 0}


def test_optional_columns_may_be_absent(tmp_path: Path):
    path = tmp_path / "events.csv"
    path.write_text("title\nBook Club\n")
    store = DocumentStore()

    assert load_events(path, store) == 1
    [event] = store.all_events()
    assert event.title == "Book Club"
    assert event.interests == []


@pytest.mark.skipif(bool(os.getenv("EVENTFINDER_SEED_DIR")), reason="seed dir overridden")
def test_default_seed_dir_is_independent_of_cwd():
    cfg = IngestionConfig()
    assert cfg.data_dir.is_absolute()
    assert cfg.data_dir == Path(ingestion_config.__file__).resolve().parent.parent / "data" / "seed"
    assert cfg.events_path.exists()
    assert cfg.users_path.exists()
