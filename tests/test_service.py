"""End-to-end tests for PdfConverter with the stand-in soffice."""

import pytest

from officepdf.config.models import DiskConfig, OfficePdfConfig
from officepdf.converter.errors import ErrorKind, InputNotFoundError, WriteFailedError
from officepdf.converter.models import ConversionOptions
from officepdf.service import PdfConverter
from officepdf.storage.disks import DiskRegistry, LocalDisk


@pytest.fixture
def service_config(scratch_root):
    return OfficePdfConfig(temp_dir=str(scratch_root))


@pytest.fixture
def converter(service_config, renderer):
    return PdfConverter(service_config, renderer=renderer)


def _scratch_leftovers(scratch_root):
    return list(scratch_root.iterdir()) if scratch_root.exists() else []


class TestSingleFile:
    def test_default_output_next_to_input(self, converter, make_doc):
        doc = make_doc("memo.docx", b"memo")
        out = converter.convert(doc)
        assert out == doc.with_suffix(".pdf")
        assert out.read_bytes().endswith(b"memo")

    def test_explicit_output(self, converter, make_doc, tmp_path):
        out = converter.convert(make_doc("sheet.xlsx"), tmp_path / "pdfs" / "sheet.pdf")
        assert out.exists()

    def test_missing_input(self, converter, tmp_path):
        with pytest.raises(InputNotFoundError):
            converter.convert(tmp_path / "missing.docx")

    def test_refuses_to_overwrite_input(self, converter, make_doc):
        doc = make_doc("already.pdf", b"original")
        with pytest.raises(WriteFailedError, match="overwrite the input"):
            converter.convert(doc, doc)
        assert doc.read_bytes() == b"original"

    def test_convert_to(self, converter, make_doc, tmp_path):
        out = converter.convert_to(make_doc("notes.odt"), tmp_path / "notes.docx", "docx")
        assert out.exists()

    def test_convert_to_same_path(self, converter, make_doc):
        doc = make_doc("notes.docx")
        with pytest.raises(WriteFailedError):
            converter.convert_to(doc, doc, "docx")


class TestLocalBatch:
    def test_plain_paths(self, converter, make_doc, tmp_path, scratch_root):
        docs = [make_doc("a.docx"), make_doc("b.pptx")]
        result = converter.convert_batch([str(d) for d in docs], str(tmp_path / "out"))
        assert result.success
        assert result.cloud_storage is False
        assert result.storage_disk is None
        assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["a.pdf", "b.pdf"]
        assert _scratch_leftovers(scratch_root) == []

    def test_default_output_dir_is_first_inputs_parent(self, converter, make_doc):
        doc = make_doc("a.docx")
        result = converter.convert_batch([doc])
        assert result.output_dir == str(doc.parent)
        assert doc.with_suffix(".pdf").exists()

    def test_local_disk_keys(self, scratch_root, renderer, make_doc, tmp_path):
        make_doc("a.docx")
        config = OfficePdfConfig(
            temp_dir=str(scratch_root),
            disks={"docs": DiskConfig(driver="local", root=str(tmp_path / "docs"))},
            default_disk="docs",
        )
        result = PdfConverter(config, renderer=renderer).convert_batch(["a.docx"], "pdf")
        assert result.success
        assert result.storage_disk == "docs"
        assert (tmp_path / "docs" / "pdf" / "a.pdf").exists()

    def test_partial_failure(self, converter, make_doc, tmp_path):
        good = make_doc("good.docx")
        result = converter.convert_batch(
            [str(good), str(tmp_path / "missing.docx")], str(tmp_path / "out"),
            ConversionOptions(workers=2),
        )
        assert (result.succeeded, result.failed) == (1, 1)
        assert result.outcomes[1].error_kind is ErrorKind.file_not_found


class TestRemoteBatch:
    @pytest.fixture
    def remote_converter(self, service_config, renderer, memory_disk):
        registry = DiskRegistry()
        registry.register(memory_disk)
        return PdfConverter(service_config, renderer=renderer, disks=registry)

    def test_round_trip(self, remote_converter, memory_disk, scratch_root):
        memory_disk.files.update({"in/a.docx": b"alpha", "in/b.xlsx": b"beta"})

        result = remote_converter.convert_batch(
            ["in/a.docx", "in/missing.docx", "in/b.xlsx"], "out", disk="remote"
        )

        assert [o.request.display_name for o in result.outcomes] == [
            "in/a.docx",
            "in/missing.docx",
            "in/b.xlsx",
        ]
        a, missing, b = result.outcomes
        assert a.success and a.remote_output_key == "out/a.pdf"
        assert b.success and b.remote_output_key == "out/b.pdf"
        assert missing.error_kind is ErrorKind.file_not_found
        assert memory_disk.files["out/a.pdf"].endswith(b"alpha")
        assert result.cloud_storage is True
        assert result.cloud_output_dir == "out"
        assert result.storage_disk == "remote"
        assert _scratch_leftovers(scratch_root) == []

    def test_upload_failure_still_cleans_up(self, remote_converter, memory_disk, scratch_root):
        memory_disk.files.update({"a.docx": b"a", "b.docx": b"b"})
        memory_disk.fail_put.add("b.pdf")

        result = remote_converter.convert_batch(["a.docx", "b.docx"], "out", disk="remote")

        ok, failed = result.outcomes
        assert ok.success
        assert failed.error_kind is ErrorKind.write_failed
        assert "out/b.pdf" not in memory_disk.files
        assert _scratch_leftovers(scratch_root) == []

    def test_conversion_failure_on_remote(self, remote_converter, memory_disk, scratch_root):
        memory_disk.files["fail.docx"] = b"x"
        result = remote_converter.convert_batch(["fail.docx"], "out", disk="remote")
        (outcome,) = result.outcomes
        assert outcome.error_kind is ErrorKind.conversion_failed
        assert memory_disk.files.keys() == {"fail.docx"}
        assert _scratch_leftovers(scratch_root) == []

    def test_remote_source_local_destination(
        self, service_config, renderer, memory_disk, tmp_path, scratch_root
    ):
        registry = DiskRegistry()
        registry.register(memory_disk)
        registry.register(LocalDisk(tmp_path / "results", name="local"))
        memory_disk.files["in/deck.pptx"] = b"slides"
        converter = PdfConverter(service_config, renderer=renderer, disks=registry)

        result = converter.convert_batch(
            ["in/deck.pptx"], "converted", disk="remote", output_disk="local"
        )

        assert result.success
        assert result.cloud_output_dir is None
        assert (tmp_path / "results" / "converted" / "deck.pdf").exists()
        assert _scratch_leftovers(scratch_root) == []

    def test_local_source_remote_destination(
        self, service_config, renderer, memory_disk, tmp_path, scratch_root
    ):
        registry = DiskRegistry()
        registry.register(memory_disk)
        registry.register(LocalDisk(tmp_path / "docs", name="local"))
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "memo.docx").write_bytes(b"memo")
        converter = PdfConverter(service_config, renderer=renderer, disks=registry)

        result = converter.convert_batch(["memo.docx"], "pdf", disk="local", output_disk="remote")

        (outcome,) = result.outcomes
        assert outcome.remote_output_key == "pdf/memo.pdf"
        assert memory_disk.files["pdf/memo.pdf"].endswith(b"memo")
        assert result.cloud_output_dir == "pdf"
        assert result.storage_disk == "local"
        assert _scratch_leftovers(scratch_root) == []

    def test_same_name_keys_upload_separately(self, remote_converter, memory_disk, scratch_root):
        memory_disk.files.update({"in/x.docx": b"inbox", "archive/x.docx": b"archived"})

        result = remote_converter.convert_batch(
            ["in/x.docx", "archive/x.docx"], "out", disk="remote"
        )

        assert [o.remote_output_key for o in result.outcomes] == ["out/x.pdf", "out/x-1.pdf"]
        assert memory_disk.files["out/x.pdf"].endswith(b"inbox")
        assert memory_disk.files["out/x-1.pdf"].endswith(b"archived")
        assert _scratch_leftovers(scratch_root) == []

    def test_unknown_disk(self, remote_converter):
        with pytest.raises(ValueError, match="Unknown disk"):
            remote_converter.convert_batch(["a.docx"], "out", disk="nope")
