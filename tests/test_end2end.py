"""
End-to-end integration tests for the Document Reconstruction Engine.
"""

import io
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


RAW_TEXT = (
    "Staff overview\n"
    "Name\tAge\tCity\n"
    "John\t30\tNYC\n"
    "Jane\t28\tLA\n"
    "End of overview."
)

HTML_TEXT = (
    "<h1>Inventory</h1>"
    "<table><tr><th>Item</th><th>Qty</th></tr><tr><td>Bolts</td><td>40</td></tr></table>"
)


class TestDocumentAssembler:
    """Integration tests for the assembler pipeline."""

    @pytest.fixture
    def assembler(self):
        from docrecast.utils.assembler import DocumentAssembler
        return DocumentAssembler()

    def test_prepare_text(self, assembler):
        """Tables are rewritten in place and wrapped in sentinels."""
        prepared = assembler.prepare_text(RAW_TEXT)

        assert prepared.split("\n")[0] == "Staff overview"
        assert "[TABLE START]" in prepared
        assert "1. Name: John | Age: 30 | City: NYC" in prepared
        assert prepared.endswith("[TABLE END]\nEnd of overview.")

    def test_prepare_text_without_sentinels(self):
        from docrecast.config import PipelineConfig
        from docrecast.utils.assembler import DocumentAssembler

        config = PipelineConfig()
        config.detection.wrap_sentinels = False
        prepared = DocumentAssembler(config).prepare_text(RAW_TEXT)

        assert "[TABLE START]" not in prepared

    def test_prepare_html(self, assembler):
        prepared = assembler.prepare_html(HTML_TEXT)

        assert "<table>" not in prepared
        assert "1. Item: Bolts | Qty: 40" in prepared

    def test_process_with_rewriter(self):
        """The rewriting step receives normalized text and returns markup."""
        from docrecast.utils.assembler import DocumentAssembler
        from docrecast.utils.markup import BlockType

        received = []

        def rewriter(text):
            received.append(text)
            lines = [line for line in text.split("\n") if not line.startswith("[TABLE")]
            return "# Staff\n" + "\n".join(lines)

        assembler = DocumentAssembler(rewriter=rewriter)
        result = assembler.process(RAW_TEXT, "md", "Staff list")

        assert "[TABLE START]" in received[0]
        assert result.document[0].block_type == BlockType.HEADING
        items = result.document.blocks_of_type(BlockType.ORDERED_ITEM)
        assert [b.text for b in items] == [
            "Name: John | Age: 30 | City: NYC",
            "Name: Jane | Age: 28 | City: LA",
        ]
        assert result.data.startswith(b"---\ndescription: Staff list\n---\n\n# Staff\n")

    def test_process_to_docx(self, assembler):
        from docx import Document

        result = assembler.process(RAW_TEXT, "docx", "Staff list")
        docx = Document(io.BytesIO(result.data))

        numbered = [p.text for p in docx.paragraphs if p.style.name == "List Number"]
        assert numbered == [
            "Name: John | Age: 30 | City: NYC",
            "Name: Jane | Age: 28 | City: LA",
        ]
        assert docx.core_properties.subject == "Staff list"

    def test_process_html(self, assembler):
        result = assembler.process(HTML_TEXT, "txt", "Inventory", is_html=True)
        assert b"1. Item: Bolts | Qty: 40" in result.data

    def test_convert_result(self, assembler):
        result = assembler.convert("# Title\ntext", "txt", "S")
        data = result.to_dict()

        assert data["format"] == "txt"
        assert data["num_blocks"] == 2
        assert data["num_bytes"] == len(result.data)

    def test_convert_unsupported_format(self, assembler):
        from docrecast.utils.export import UnsupportedFormatError

        with pytest.raises(UnsupportedFormatError):
            assembler.convert("text", "rtf", "")

    def test_convert_batch_keeps_order(self, assembler):
        from docrecast.utils.assembler import ConversionJob

        jobs = [
            ConversionJob(f"# Topic {i}\nBody {i}", "txt", f"Summary {i}")
            for i in range(8)
        ]
        results = assembler.convert_batch(jobs, max_workers=3)

        assert len(results) == 8
        for i, result in enumerate(results):
            assert result.data.startswith(f"SUMMARY: Summary {i}\n".encode("utf-8"))
            assert result.document[0].text == f"Topic {i}"

    def test_convert_batch_empty(self, assembler):
        assert assembler.convert_batch([]) == []

    def test_convert_batch_matches_sequential(self, assembler):
        from docrecast.utils.assembler import ConversionJob

        jobs = [ConversionJob("- a\n- b", fmt, "s") for fmt in ("txt", "md", "txt")]
        batch = assembler.convert_batch(jobs, max_workers=2)
        sequential = [assembler.convert(j.markup, j.fmt, j.summary) for j in jobs]

        assert [r.data for r in batch] == [r.data for r in sequential]


class TestConfig:
    """Test configuration and environment overrides."""

    def test_defaults(self):
        from docrecast.config import PipelineConfig

        config = PipelineConfig()

        assert config.detection.min_lines == 2
        assert config.header.length_ratio == 0.7
        assert config.export.separator_width == 80
        assert config.max_workers == 3

    def test_environment_overrides(self, monkeypatch):
        from docrecast.config import get_config

        monkeypatch.setenv("DOC_RECAST_EXPORT_FORMAT", "DOCX")
        monkeypatch.setenv("DOC_RECAST_MAX_WORKERS", "5")
        monkeypatch.setenv("DOC_RECAST_NO_SENTINELS", "true")
        monkeypatch.setenv("DOC_RECAST_DEBUG", "true")

        config = get_config()

        assert config.export.default_format == "docx"
        assert config.max_workers == 5
        assert config.detection.wrap_sentinels is False
        assert config.debug_mode is True

    def test_invalid_worker_count_ignored(self, monkeypatch):
        from docrecast.config import get_config

        monkeypatch.setenv("DOC_RECAST_MAX_WORKERS", "many")
        assert get_config().max_workers == 3

    def test_detect_kwargs(self):
        from docrecast.config import DetectionConfig

        kwargs = DetectionConfig(min_lines=3).detect_kwargs()
        assert kwargs["min_lines"] == 3
        assert "wrap_sentinels" not in kwargs


class TestCLI:
    """Test the command line front end."""

    def test_export_markup(self, tmp_path):
        from docrecast.cli import main

        source = tmp_path / "notes.md"
        source.write_text("# Notes\n- one\n- two\n", encoding="utf-8")
        output_dir = tmp_path / "out"

        with pytest.raises(SystemExit) as exc:
            main(["--input", str(source), "--output", str(output_dir),
                  "--format", "txt", "--summary", "My notes", "--quiet"])

        assert exc.value.code == 0
        written = (output_dir / "notes_optimized.txt").read_text(encoding="utf-8")
        assert written.startswith("SUMMARY: My notes\n")
        assert "- one" in written

    def test_tables_only(self, tmp_path, capsys):
        from docrecast.cli import main

        source = tmp_path / "extracted.txt"
        source.write_text(RAW_TEXT, encoding="utf-8")

        with pytest.raises(SystemExit) as exc:
            main(["--input", str(source), "--tables-only", "--no-sentinels", "--quiet"])

        assert exc.value.code == 0
        out = capsys.readouterr().out
        assert "2. Name: Jane | Age: 28 | City: LA" in out
        assert "[TABLE START]" not in out

    def test_missing_input(self, tmp_path):
        from docrecast.cli import main

        with pytest.raises(SystemExit) as exc:
            main(["--input", str(tmp_path / "missing.md"), "--quiet"])

        assert exc.value.code == 1

    def test_debug_environment_reraises(self, tmp_path, monkeypatch):
        """DOC_RECAST_DEBUG re-raises unexpected errors like --debug."""
        from docrecast.cli import main

        source = tmp_path / "folder.md"
        source.mkdir()
        monkeypatch.setenv("DOC_RECAST_DEBUG", "true")

        with pytest.raises(OSError):
            main(["--input", str(source), "--quiet"])

    def test_unexpected_error_exit_code(self, tmp_path):
        from docrecast.cli import main

        source = tmp_path / "folder.md"
        source.mkdir()

        with pytest.raises(SystemExit) as exc:
            main(["--input", str(source), "--quiet"])

        assert exc.value.code == 1

    def test_no_sentinels_environment(self, tmp_path, capsys, monkeypatch):
        from docrecast.cli import main

        source = tmp_path / "extracted.txt"
        source.write_text(RAW_TEXT, encoding="utf-8")
        monkeypatch.setenv("DOC_RECAST_NO_SENTINELS", "true")

        with pytest.raises(SystemExit):
            main(["--input", str(source), "--tables-only", "--quiet"])

        assert "[TABLE START]" not in capsys.readouterr().out

    def test_unsupported_input(self, tmp_path):
        from docrecast.cli import main

        source = tmp_path / "scan.pdf"
        source.write_bytes(b"%PDF-1.4")

        with pytest.raises(SystemExit) as exc:
            main(["--input", str(source), "--quiet"])

        assert exc.value.code == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
