import json

import pytest

from glyphgen.errors import GenerationExhaustedError, InvalidArgumentError
from glyphgen.filters import SINGULAR_DOT_DIACRITIC_SIGNATURES
from glyphgen.phrase_builder import PhraseBuildOptions, PhraseSliceBuilder, attempt_budget
from glyphgen.writer import PHRASE_MANIFEST_FILE

from conftest import FailingScriptEngine

GENERATED_AT = "2024-01-01T00:00:00.000Z"


def make_builder(tmp_path, word_engine, script_engine, name="out", **overrides):
    options = PhraseBuildOptions(
        count=overrides.pop("count", 6),
        min_glyphs=overrides.pop("min_glyphs", 1),
        max_glyphs=overrides.pop("max_glyphs", 3),
        seed=overrides.pop("seed", 42),
        seed_label=overrides.pop("seed_label", "42"),
        out_dir=tmp_path / name,
        **overrides,
    )
    return PhraseSliceBuilder(options, word_engine, script_engine, show_progress=False)


def build(tmp_path, word_engine, script_engine, name="out", **overrides):
    return make_builder(tmp_path, word_engine, script_engine, name, **overrides).build(generated_at=GENERATED_AT)


class TestPhraseBuildOptions:
    def test_min_above_max_is_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            PhraseBuildOptions(min_glyphs=4, max_glyphs=2)

    def test_attempt_budget_depends_on_filters(self) -> None:
        assert attempt_budget(2, True, True) == 18000
        assert attempt_budget(2, True, False) == 13000
        assert attempt_budget(2, False, True) == 13000
        assert attempt_budget(2, False, False) == 7000


class TestPhraseSliceBuilder:
    def test_target_cycles_through_range(self, tmp_path, word_engine, script_engine) -> None:
        builder = make_builder(tmp_path, word_engine, script_engine, min_glyphs=2, max_glyphs=4)
        assert [builder.target_glyph_count(i) for i in range(7)] == [2, 3, 4, 2, 3, 4, 2]

    def test_exact_glyph_counts(self, tmp_path, word_engine, script_engine) -> None:
        manifest = build(tmp_path, word_engine, script_engine)
        assert [item["id"] for item in manifest["items"]] == [f"phrase-{i:03d}" for i in range(1, 7)]
        for index, item in enumerate(manifest["items"]):
            assert item["glyphCount"] == 1 + index % 3
            assert len(item["glyphs"]) == item["glyphCount"]

    def test_files_are_written(self, tmp_path, word_engine, script_engine) -> None:
        manifest = build(tmp_path, word_engine, script_engine)
        out = tmp_path / "out"
        for item in manifest["items"]:
            assert item["phraseFile"] == f"phrases/{item['id']}/phrase.svg"
            phrase_svg = (out / item["phraseFile"]).read_text()
            assert phrase_svg.startswith("<svg ")
            assert f'viewBox="{item["phraseViewBox"]}"' in phrase_svg
            for glyph in item["glyphs"]:
                assert glyph["file"] == f"phrases/{item['id']}/glyph-{glyph['index']:02d}.svg"
                assert (out / glyph["file"]).is_file()

    def test_glyph_slices_are_padded_not_scaled(self, tmp_path, word_engine, script_engine) -> None:
        manifest = build(tmp_path, word_engine, script_engine)
        target = manifest["glyphTargetHeight"]
        raw_heights = [g["rawHeight"] for item in manifest["items"] for g in item["glyphs"]]
        assert target == max(raw_heights)
        for item in manifest["items"]:
            for glyph in item["glyphs"]:
                assert glyph["height"] == target
                assert glyph["width"] == glyph["rawWidth"]
                svg = (tmp_path / "out" / glyph["file"]).read_text()
                assert "scale(" not in svg

    def test_phrases_are_unique(self, tmp_path, word_engine, script_engine) -> None:
        manifest = build(tmp_path, word_engine, script_engine)
        hashes = [item["hash"] for item in manifest["items"]]
        assert len(set(hashes)) == len(hashes)

    def test_short_glyphs_are_rejected(self, tmp_path, word_engine, script_engine) -> None:
        manifest = build(tmp_path, word_engine, script_engine, count=3, min_raw_glyph_height=60)
        for item in manifest["items"]:
            for glyph in item["glyphs"]:
                assert glyph["rawHeight"] >= 60

    def test_dot_ban(self, tmp_path, word_engine, script_engine) -> None:
        manifest = build(tmp_path, word_engine, script_engine, ban_dot=True)
        assert manifest["banDotDiacritic"] is True
        for item in manifest["items"]:
            text = " ".join((tmp_path / "out" / item["phraseFile"]).read_text().split())
            assert SINGULAR_DOT_DIACRITIC_SIGNATURES[0] not in text

    def test_same_seed_is_byte_identical(self, tmp_path, word_engine, script_engine) -> None:
        first = build(tmp_path, word_engine, script_engine, name="a")
        second = build(tmp_path, word_engine, script_engine, name="b")
        for item in first["items"]:
            files = [item["phraseFile"]] + [g["file"] for g in item["glyphs"]]
            for name in files:
                assert (tmp_path / "a" / name).read_bytes() == (tmp_path / "b" / name).read_bytes()
        first.pop("outDir")
        second.pop("outDir")
        assert first == second

    def test_manifest_fields(self, tmp_path, word_engine, script_engine) -> None:
        build(tmp_path, word_engine, script_engine, handwritten=True)
        manifest = json.loads((tmp_path / "out" / PHRASE_MANIFEST_FILE).read_text())
        assert manifest["generatedAt"] == GENERATED_AT
        assert (manifest["count"], manifest["minGlyphs"], manifest["maxGlyphs"]) == (6, 1, 3)
        assert manifest["seedSummary"] == "42 (resolved=42)"
        assert manifest["handwritten"] is True
        assert manifest["banCurlyDiacritics"] is True
        assert manifest["minRawGlyphHeight"] == 40

    def test_handwritten_is_forwarded(self, tmp_path, word_engine, script_engine) -> None:
        build(tmp_path, word_engine, script_engine, count=1, handwritten=True)
        assert script_engine.handwritten_calls
        assert all(script_engine.handwritten_calls)

    def test_stale_phrases_are_removed(self, tmp_path, word_engine, script_engine) -> None:
        stale = tmp_path / "out" / "phrases" / "phrase-999"
        stale.mkdir(parents=True)
        (stale / "phrase.svg").write_text("stale")
        build(tmp_path, word_engine, script_engine, count=2)
        assert not stale.exists()

    def test_exhaustion_reports_attempts(self, tmp_path, word_engine) -> None:
        builder = make_builder(tmp_path, word_engine, FailingScriptEngine(), count=1)
        with pytest.raises(GenerationExhaustedError) as excinfo:
            builder.build(generated_at=GENERATED_AT)
        assert excinfo.value.attempts == attempt_budget(1, True, False)
        assert "0/1" in str(excinfo.value)
        assert not (tmp_path / "out" / PHRASE_MANIFEST_FILE).exists()

    def test_stale_manifest_under_other_name_is_removed(self, tmp_path, word_engine, script_engine) -> None:
        out = tmp_path / "out"
        out.mkdir()
        (out / "old-manifest.json").write_text(json.dumps({"glyphTargetHeight": 50, "items": []}))
        (out / "pool-manifest.json").write_text(json.dumps({"widthUnits": [1, 2, 3, 4, 5]}))
        build(tmp_path, word_engine, script_engine, count=1)
        assert not (out / "old-manifest.json").exists()
        assert (out / "pool-manifest.json").exists()
        assert (out / PHRASE_MANIFEST_FILE).is_file()

    def test_bad_source_date_epoch_fails_before_work(
        self, tmp_path, word_engine, script_engine, monkeypatch
    ) -> None:
        monkeypatch.setenv("SOURCE_DATE_EPOCH", "soon")
        builder = make_builder(tmp_path, word_engine, script_engine, count=1)
        with pytest.raises(InvalidArgumentError):
            builder.build()
        assert not (tmp_path / "out").exists()
