import os
from datetime import datetime, timedelta

from ctxmenu.backup import BackupManager


def _clock(start=datetime(2024, 5, 1, 12, 0, 0)):
    ticks = {"n": 0}

    def _now():
        ticks["n"] += 1
        return start + timedelta(seconds=ticks["n"])

    return _now


def test_backup_copies_existing_config(tmp_path):
    target = tmp_path / "powertoys.nss"
    target.write_text("// current\n", encoding="utf-8")
    manager = BackupManager(tmp_path / "backups", clock=_clock())

    saved = manager.backup(target)

    assert saved is not None
    assert saved.name == "powertoys_20240501_120001_000000.nss"
    assert saved.read_text(encoding="utf-8") == "// current\n"
    assert target.exists()


def test_backup_of_missing_config_is_noop(tmp_path):
    manager = BackupManager(tmp_path / "backups")

    assert manager.backup(tmp_path / "missing.nss") is None
    assert not (tmp_path / "backups").exists()


def test_prune_keeps_newest_by_modification_time(tmp_path):
    backup_dir = tmp_path / "backups"
    backup_dir.mkdir()
    paths = []
    for i in range(12):
        path = backup_dir / f"powertoys_{i:02d}.nss"
        path.write_text(str(i), encoding="utf-8")
        os.utime(path, (1_700_000_000 + i, 1_700_000_000 + i))
        paths.append(path)
    (backup_dir / "notes.txt").write_text("unrelated", encoding="utf-8")

    removed = BackupManager(backup_dir, keep=10).prune()

    assert sorted(removed) == paths[:2]
    assert not paths[0].exists()
    assert not paths[1].exists()
    assert all(p.exists() for p in paths[2:])
    assert (backup_dir / "notes.txt").exists()


def test_backup_rotates_after_limit(tmp_path):
    target = tmp_path / "powertoys.nss"
    target.write_text("x", encoding="utf-8")
    manager = BackupManager(tmp_path / "backups", keep=3, clock=_clock())

    for _ in range(5):
        manager.backup(target)

    assert len(manager.backups()) == 3
