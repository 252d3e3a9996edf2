"""Tests for document validation, storage and the file registry."""

import re
from pathlib import Path

import pytest

from cmcs.utils.errors import (
    ClaimValidationError,
    ErrorType,
    FileValidationError,
)

MB = 1024 * 1024


def test_save_file_copies_and_registers(files, make_upload):
    source = make_upload("timesheet.pdf", b"%PDF-1.4 timesheet")

    stored_path = Path(files.save_file(source, "C2025-001"))

    assert stored_path.parent == files.documents_dir / "C2025-001"
    assert re.fullmatch(r"timesheet_\d{14}\.pdf", stored_path.name)
    assert stored_path.read_bytes() == b"%PDF-1.4 timesheet"

    [entry] = files.get_claim_files("C2025-001")
    assert entry.original_file_name == "timesheet.pdf"
    assert entry.stored_file_name == stored_path.name
    assert entry.storage_path == str(stored_path)
    assert entry.file_size == len(b"%PDF-1.4 timesheet")
    assert entry.file_type == "Document"
    assert files.get_file(entry.file_id) == entry
    assert files.get_file_by_path(stored_path) == entry


@pytest.mark.parametrize(
    "extension, category",
    [(".pdf", "Document"), ("DOCX", "Document"), (".PNG", "Image"),
     ("jpeg", "Image"), (".exe", "Unknown"), ("", "Unknown")],
)
def test_get_file_category(files, extension, category):
    assert files.get_file_category(extension) == category


def test_uppercase_extension_is_accepted(files, make_upload):
    source = make_upload("SCAN.JPG")

    assert files.validate_file(source) == "Image"


def test_oversized_document_rejected_with_limit(files, make_upload):
    source = make_upload("thesis.pdf", size=60 * MB)

    with pytest.raises(FileValidationError) as exc_info:
        files.save_file(source, "C2025-001")

    error = exc_info.value
    assert error.error_type == ErrorType.FILE_TOO_LARGE
    assert "50 MB" in error.user_message
    assert "60.00 MB" in error.user_message
    assert files.get_claim_files("C2025-001") == []
    assert not (files.documents_dir / "C2025-001").exists()


def test_oversized_image_rejected_with_limit(files, make_upload):
    source = make_upload("photo.png", size=11 * MB)

    with pytest.raises(FileValidationError) as exc_info:
        files.validate_file(source)

    assert "10 MB" in exc_info.value.user_message


def test_file_at_exact_limit_is_accepted(files, make_upload):
    source = make_upload("exact.pdf", size=50 * MB)

    assert files.validate_file(source) == "Document"


def test_disallowed_type_rejected(files, make_upload):
    source = make_upload("script.exe")

    with pytest.raises(FileValidationError) as exc_info:
        files.save_file(source, "C2025-001")

    assert exc_info.value.error_type == ErrorType.FILE_TYPE_NOT_ALLOWED
    assert ".pdf" in exc_info.value.user_message


def test_missing_source_rejected(files, upload_dir):
    with pytest.raises(FileValidationError) as exc_info:
        files.save_file(upload_dir / "nowhere.pdf", "C2025-001")

    assert exc_info.value.error_type == ErrorType.FILE_NOT_FOUND


def test_claim_id_must_be_a_plain_folder_name(files, make_upload):
    source = make_upload("timesheet.pdf")

    with pytest.raises(ClaimValidationError):
        files.save_file(source, "../outside")


def test_save_multiple_files_skips_failures(files, make_upload):
    good_doc = make_upload("timesheet.pdf")
    good_image = make_upload("signature.png")
    bad_type = make_upload("notes.txt")
    too_big = make_upload("huge.docx", size=51 * MB)

    saved = files.save_multiple_files([good_doc, bad_type, good_image, too_big], "C2025-001")

    assert len(saved) == 2
    assert Path(saved[0]).name.startswith("timesheet_")
    assert Path(saved[1]).name.startswith("signature_")
    assert len(files.get_claim_files("C2025-001")) == 2


def test_delete_file(files, make_upload):
    stored_path = Path(files.save_file(make_upload("timesheet.pdf"), "C2025-001"))
    [entry] = files.get_claim_files("C2025-001")

    assert files.delete_file(entry.file_id) is True
    assert not stored_path.exists()
    assert files.get_file(entry.file_id) is None
    assert files.delete_file(entry.file_id) is False


def test_delete_file_when_copy_already_gone(files, make_upload):
    stored_path = Path(files.save_file(make_upload("timesheet.pdf"), "C2025-001"))
    [entry] = files.get_claim_files("C2025-001")
    stored_path.unlink()

    assert files.delete_file(entry.file_id) is True
    assert files.get_claim_files("C2025-001") == []


def test_delete_claim_files_removes_folder(files, make_upload):
    files.save_file(make_upload("timesheet.pdf"), "C2025-001")
    files.save_file(make_upload("signature.png"), "C2025-001")
    files.save_file(make_upload("other.pdf"), "C2025-002")

    assert files.delete_claim_files("C2025-001") == 2
    assert not (files.documents_dir / "C2025-001").exists()
    assert len(files.get_claim_files("C2025-002")) == 1


def test_cleanup_removes_exactly_the_orphans(claims, files, make_claim, make_upload):
    kept_id = claims.add(make_claim())
    kept_path = Path(files.save_file(make_upload("timesheet.pdf"), kept_id))
    orphan_a = Path(files.save_file(make_upload("old.pdf"), "C2024-017"))
    orphan_b = Path(files.save_file(make_upload("older.png"), "C2024-018"))

    assert files.cleanup_orphaned_files() == 2

    assert kept_path.exists()
    assert not orphan_a.exists()
    assert not orphan_b.exists()
    assert [e.claim_id for e in files.registry.load()] == [kept_id]
    assert not (files.documents_dir / "C2024-017").exists()
    assert files.cleanup_orphaned_files() == 0


def test_cleanup_skipped_when_claims_unreadable(claims, files, make_claim, make_upload):
    claim_id = claims.add(make_claim())
    stored_path = Path(files.save_file(make_upload("timesheet.pdf"), claim_id))
    claims.store.path.write_text("{corrupt", encoding="utf-8")

    assert files.cleanup_orphaned_files() == 0
    assert stored_path.exists()
    assert len(files.registry.load()) == 1


def test_resolve_file_path(files, make_upload):
    stored_path = Path(files.save_file(make_upload("timesheet.pdf"), "C2025-001"))
    [entry] = files.get_claim_files("C2025-001")

    assert files.resolve_file_path(entry.file_id) == stored_path

    stored_path.unlink()
    with pytest.raises(FileValidationError):
        files.resolve_file_path(entry.file_id)
    with pytest.raises(FileValidationError):
        files.resolve_file_path("missing-id")


def test_storage_statistics(files, make_upload):
    files.save_file(make_upload("a.pdf", b"x" * 1024), "C2025-001")
    files.save_file(make_upload("b.png", b"x" * 512), "C2025-001")
    files.save_file(make_upload("c.docx", b"x" * 512), "C2025-002")

    stats = files.get_storage_statistics()

    assert stats.total_files == 3
    assert stats.total_size_bytes == 2048
    assert stats.total_size_formatted == "2 KB"
    assert stats.files_by_type == {"Document": 2, "Image": 1}
    assert stats.files_by_claim == {"C2025-001": 2, "C2025-002": 1}


def test_same_named_files_in_one_batch_are_kept_apart(files, tmp_path):
    march = tmp_path / "march"
    april = tmp_path / "april"
    march.mkdir()
    april.mkdir()
    (march / "timesheet.pdf").write_bytes(b"MARCH")
    (april / "timesheet.pdf").write_bytes(b"APRIL")

    saved = files.save_multiple_files(
        [march / "timesheet.pdf", april / "timesheet.pdf"], "C2025-001"
    )

    assert len(set(saved)) == 2
    assert [Path(p).read_bytes() for p in saved] == [b"MARCH", b"APRIL"]
    assert re.fullmatch(r"timesheet_\d{14}(_\d+)?\.pdf", Path(saved[1]).name)

    first, second = files.get_claim_files("C2025-001")
    assert first.stored_file_name != second.stored_file_name

    files.delete_file(first.file_id)
    assert Path(second.storage_path).read_bytes() == b"APRIL"
