import pytest

from peertrack.extractor import compile_pattern, extract_pairs
from peertrack.log_scanner import list_log_files, record_observation, scan_logs
from peertrack.registry import PeerRegistry

UID_A = "76561198000000001"
UID_B = "76561198000000002"


@pytest.fixture
def log_dir(tmp_path):
    (tmp_path / "output_log.log").write_text(
        f"[Net] Connected to {UID_A} at 10.0.0.1:7777\n"
        "unrelated line\n"
        f"[Net] Connected to {UID_B} at 10.0.0.2:7777\n"
    )
    (tmp_path / "notes.txt").write_text(f"{UID_A} 10.9.9.9\n")
    sub = tmp_path / "old.log"
    sub.mkdir()
    (sub / "nested.log").write_text(f"{UID_A} 10.8.8.8\n")
    return tmp_path


def test_list_log_files_skips_dirs_and_other_extensions(log_dir):
    files = list_log_files(log_dir)
    assert [f.rsplit("/", 1)[-1] for f in files] == ["output_log.log"]


def test_extract_pairs_is_lazy_and_matches(log_dir):
    gen = extract_pairs(log_dir / "output_log.log")
    assert next(gen) == (UID_A, "10.0.0.1")
    assert list(gen) == [(UID_B, "10.0.0.2")]


def test_compile_pattern_requires_named_groups():
    with pytest.raises(ValueError):
        compile_pattern(r"(?P<uid>\d+)")


def test_scan_logs_populates_registry(log_dir):
    reg = PeerRegistry()
    result = scan_logs(log_dir, reg)
    assert result.files == 1
    assert result.observations == 2
    assert result.updated == 2
    assert len(reg) == 2
    assert reg.owner_of("10.0.0.1").uid == UID_A
    assert reg.owner_of("10.0.0.2").uid == UID_B
    assert reg.owner_of("10.9.9.9") is None
    assert reg.owner_of("10.8.8.8") is None


def test_rescan_changes_nothing(log_dir):
    reg = PeerRegistry()
    scan_logs(log_dir, reg)
    for p in reg:
        p.mark_saved(p.revision)
    result = scan_logs(log_dir, reg)
    assert result.updated == 0
    assert not reg.has_dirty()


def test_existing_uid_is_not_overwritten():
    reg = PeerRegistry()
    p = reg.get_or_create("10.0.0.1")
    reg.observe(p, uid="first")
    assert record_observation(reg, "second", "10.0.0.1") is False
    assert p.uid == "first"


def test_custom_extractor_and_bad_ips_are_skipped(tmp_path):
    (tmp_path / "a.log").write_text("x")
    pairs = [("u1", "10.0.0.1"), ("u2", "not-an-ip"), ("u3", "10.0.0.3")]
    reg = PeerRegistry()
    result = scan_logs(tmp_path, reg, extractor=lambda path: iter(pairs))
    assert result.observations == 3
    assert result.updated == 2
    assert len(reg) == 2


def test_unreadable_file_is_logged_and_skipped(tmp_path, caplog):
    (tmp_path / "a.log").write_text("x")
    (tmp_path / "b.log").write_text("x")

    def extractor(path):
        if path.endswith("a.log"):
            raise PermissionError("denied")
        yield "u", "10.0.0.5"

    reg = PeerRegistry()
    result = scan_logs(tmp_path, reg, extractor=extractor)
    assert result.files == 2
    assert len(reg) == 1
    assert any("denied" in r.message for r in caplog.records)


def test_missing_log_dir_is_logged_not_raised(tmp_path, caplog):
    reg = PeerRegistry()
    result = scan_logs(tmp_path / "nope", reg)
    assert result.files == 0
    assert result.observations == 0
    assert len(reg) == 0
    assert any("Error listing log directory" in r.message for r in caplog.records)
