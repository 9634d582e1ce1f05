import pytest

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


def test_register_and_fetch_file(tracker, tmp_path):
    las = tmp_path / "WELL_A.las"
    las.write_text("~V\n")

    created = tracker.register_file("WELL_A", las_path=las, well_name="WELL A")
    assert created is True

    status = tracker.get_file_status("WELL_A")
    assert status["file_id"] == "WELL_A"
    assert status["well_name"] == "WELL A"
    assert status["las_path"] == str(las)
    assert status["file_size_mb"] > 0
    assert status["status"] == "pending"


def test_register_duplicate_is_noop(tracker):
    tracker.register_file("WELL_B")
    assert tracker.register_file("WELL_B") is False


def test_stage_progression(tracker, tmp_path):
    tracker.register_file("WELL_C")

    tracker.mark_stage_complete("WELL_C", "parsed", num_curves=4)
    status = tracker.get_file_status("WELL_C")
    assert status["parsed_at"] is not None
    assert status["num_curves"] == 4
    assert status["status"] == "processing"

    report = tmp_path / "WELL_C_report.json"
    nc = tmp_path / "WELL_C_processed.nc"
    tracker.mark_stage_complete("WELL_C", "processed", path=report, netcdf_path=nc)
    status = tracker.get_file_status("WELL_C")
    assert status["report_path"] == str(report)
    assert status["netcdf_path"] == str(nc)
    assert status["num_curves"] == 4


def test_certified_completes(tracker):
    tracker.register_file("WELL_D")
    tracker.mark_stage_complete("WELL_D", "certified", overall_grade="B")

    status = tracker.get_file_status("WELL_D")
    assert status["status"] == "completed"
    assert status["overall_grade"] == "B"


def test_error_marks_failed(tracker):
    tracker.register_file("WELL_E")
    tracker.mark_stage_complete("WELL_E", "parsed", error="Empty file buffer")

    status = tracker.get_file_status("WELL_E")
    assert status["status"] == "failed"
    assert status["parsed_at"] is None
    assert status["error_message"] == "Empty file buffer"


def test_invalid_stage_rejected(tracker):
    tracker.register_file("WELL_F")
    with pytest.raises(ValueError, match="Invalid stage"):
        tracker.mark_stage_complete("WELL_F", "plotted")


def test_should_process(tracker):
    assert tracker.should_process("UNKNOWN") is True

    tracker.register_file("WELL_G")
    assert tracker.should_process("WELL_G", "certified") is True
    tracker.mark_stage_complete("WELL_G", "certified")
    assert tracker.should_process("WELL_G", "certified") is False


def test_pending_files_by_stage(tracker):
    for file_id in ("P1", "P2", "P3"):
        tracker.register_file(file_id)
    tracker.mark_stage_complete("P1", "parsed")
    tracker.mark_stage_complete("P2", "parsed")
    tracker.mark_stage_complete("P2", "processed")

    assert [r["file_id"] for r in tracker.get_pending_files("processed")] == ["P1"]
    assert [r["file_id"] for r in tracker.get_pending_files("certified")] == ["P2"]
    assert len(tracker.get_pending_files(limit=2)) == 2


def test_statistics(tracker):
    tracker.register_file("S1")
    tracker.register_file("S2")
    tracker.register_file("S3")
    tracker.mark_stage_complete("S1", "certified")
    tracker.mark_stage_complete("S2", "parsed", error="boom")

    stats = tracker.get_statistics()
    assert stats["total"] == 3
    assert stats["completed"] == 1
    assert stats["failed"] == 1
    assert stats["pending"] == 1


def test_statistics_empty_database(tracker):
    stats = tracker.get_statistics()
    assert stats["total"] == 0
    assert stats["failed"] == 0


def test_reset_failed(tracker):
    tracker.register_file("R1")
    tracker.mark_stage_complete("R1", "processed", error="boom")

    assert tracker.reset_failed() == 1
    status = tracker.get_file_status("R1")
    assert status["status"] == "pending"
    assert status["error_message"] is None


def test_cleanup_deleted_files(tracker, tmp_path):
    kept = tmp_path / "kept.las"
    kept.write_text("x")
    gone = tmp_path / "gone.las"
    gone.write_text("x")
    tracker.register_file("kept", las_path=kept)
    tracker.register_file("gone", las_path=gone)
    gone.unlink()

    assert tracker.cleanup_deleted_files() == ["gone"]
    assert tracker.get_file_status("gone") is None
    assert tracker.get_file_status("kept") is not None


def test_context_manager_closes(temp_dir):
    from lasqc.pipeline.file_tracker import FileProcessingTracker

    with FileProcessingTracker(temp_dir / "ctx.db") as t:
        t.register_file("X")
    assert t._conn is None
