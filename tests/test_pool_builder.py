import json
import logging

import pytest

from glyphgen.errors import GenerationExhaustedError, InvalidArgumentError
from glyphgen.filters import CURLY_DIACRITIC_SIGNATURES
from glyphgen.pool_builder import GlyphPoolBuilder, PoolBuildOptions, attempt_budget
from glyphgen.writer import POOL_MANIFEST_FILE, SINGLE_SPRITE_FILE, pool_file_name

from conftest import FailingScriptEngine

GENERATED_AT = "2024-01-01T00:00:00.000Z"


def build(tmp_path, word_engine, script_engine, name="out", **overrides):
    options = PoolBuildOptions(
        per_pool=overrides.pop("per_pool", 3),
        base_count=overrides.pop("base_count", 20),
        seed=overrides.pop("seed", 42),
        seed_label=overrides.pop("seed_label", "42"),
        out_dir=tmp_path / name,
        **overrides,
    )
    builder = GlyphPoolBuilder(options, word_engine, script_engine, show_progress=False)
    return builder, builder.build(generated_at=GENERATED_AT)


class TestPoolBuildOptions:
    def test_base_count_floor(self) -> None:
        assert PoolBuildOptions(per_pool=100, base_count=10).base_count == 500
        assert PoolBuildOptions(per_pool=2, base_count=30).base_count == 30

    def test_attempt_budget(self) -> None:
        assert attempt_budget(10, True) == 10 * 180 * 5
        assert attempt_budget(10, False) == 10 * 70 * 5


class TestGlyphPoolBuilder:
    def test_every_width_pool_meets_quota(self, tmp_path, word_engine, script_engine) -> None:
        _, manifest = build(tmp_path, word_engine, script_engine)
        assert manifest["total"] == 15
        assert len(manifest["items"]) == 15
        for unit in range(1, 6):
            assert len(manifest["pools"][str(unit)]) == 3
            assert (tmp_path / "out" / pool_file_name(unit)).is_file()

    def test_items_are_unique(self, tmp_path, word_engine, script_engine) -> None:
        _, manifest = build(tmp_path, word_engine, script_engine)
        ids = [item["id"] for item in manifest["items"]]
        hashes = [item["hash"] for item in manifest["items"]]
        assert len(set(ids)) == len(ids)
        assert len(set(hashes)) == len(hashes)

    def test_width_unit_follows_glyph_count(self, tmp_path, word_engine, script_engine) -> None:
        _, manifest = build(tmp_path, word_engine, script_engine)
        for item in manifest["items"]:
            assert item["widthUnit"] == min(5, max(1, item["glyphCount"]))
            assert item["file"] == pool_file_name(item["widthUnit"])

    def test_heights_are_equalized(self, tmp_path, word_engine, script_engine) -> None:
        _, manifest = build(tmp_path, word_engine, script_engine)
        target = manifest["poolTargetHeights"]["1"]
        assert set(manifest["poolTargetHeights"].values()) == {target}
        for item in manifest["items"]:
            assert item["normalizedHeight"] == pytest.approx(target)
            assert item["heightNormalizeScale"] <= 1 + 1e-9

    def test_curly_ban_keeps_sprites_clean(self, tmp_path, word_engine, script_engine) -> None:
        build(tmp_path, word_engine, script_engine, ban_curly=True)
        for unit in range(1, 6):
            text = (tmp_path / "out" / pool_file_name(unit)).read_text()
            assert not any(signature in " ".join(text.split()) for signature in CURLY_DIACRITIC_SIGNATURES)

    def test_single_sprite_has_one_symbol_per_width(self, tmp_path, word_engine, script_engine) -> None:
        _, manifest = build(tmp_path, word_engine, script_engine)
        text = (tmp_path / "out" / SINGLE_SPRITE_FILE).read_text()
        for unit in range(1, 6):
            assert f'<symbol id="w{unit}"' in text
        assert manifest["singleSpriteFile"] == SINGLE_SPRITE_FILE

    def test_manifest_records_seed(self, tmp_path, word_engine, script_engine) -> None:
        build(tmp_path, word_engine, script_engine, seed=7, seed_label="7")
        manifest = json.loads((tmp_path / "out" / POOL_MANIFEST_FILE).read_text())
        assert manifest["seed"] == "7"
        assert manifest["resolvedSeed"] == 7
        assert manifest["seedSummary"] == "7 (resolved=7)"
        assert manifest["generatedAt"] == GENERATED_AT
        assert manifest["widthUnits"] == [1, 2, 3, 4, 5]

    def test_same_seed_is_byte_identical(self, tmp_path, word_engine, script_engine) -> None:
        build(tmp_path, word_engine, script_engine, name="a")
        build(tmp_path, word_engine, script_engine, name="b")
        for unit in range(1, 6):
            name = pool_file_name(unit)
            assert (tmp_path / "a" / name).read_bytes() == (tmp_path / "b" / name).read_bytes()
        assert (tmp_path / "a" / SINGLE_SPRITE_FILE).read_bytes() == (tmp_path / "b" / SINGLE_SPRITE_FILE).read_bytes()

        manifests = [json.loads((tmp_path / d / POOL_MANIFEST_FILE).read_text()) for d in ("a", "b")]
        for manifest in manifests:
            manifest.pop("outDir")
        assert manifests[0] == manifests[1]

    def test_different_seeds_differ(self, tmp_path, word_engine, script_engine) -> None:
        _, first = build(tmp_path, word_engine, script_engine, name="a", seed=1)
        _, second = build(tmp_path, word_engine, script_engine, name="b", seed=2)
        assert [i["word"] for i in first["items"]] != [i["word"] for i in second["items"]]

    def test_previous_outputs_are_replaced(self, tmp_path, word_engine, script_engine) -> None:
        out = tmp_path / "out"
        out.mkdir()
        (out / pool_file_name(1)).write_text("stale")
        (out / "notes.txt").write_text("keep")
        build(tmp_path, word_engine, script_engine)
        assert (out / pool_file_name(1)).read_text() != "stale"
        assert (out / "notes.txt").read_text() == "keep"

    def test_exhaustion_reports_attempts(self, tmp_path, word_engine) -> None:
        options = PoolBuildOptions(per_pool=1, base_count=1, seed=1, out_dir=tmp_path / "out")
        builder = GlyphPoolBuilder(options, word_engine, FailingScriptEngine(), show_progress=False)
        with pytest.raises(GenerationExhaustedError) as excinfo:
            builder.build(generated_at=GENERATED_AT)
        assert excinfo.value.attempts == attempt_budget(5, True)
        assert "--base-count" in str(excinfo.value)
        assert not (tmp_path / "out" / POOL_MANIFEST_FILE).exists()

    def test_stale_manifest_under_other_name_is_removed(self, tmp_path, word_engine, script_engine) -> None:
        out = tmp_path / "out"
        out.mkdir()
        (out / "old-manifest.json").write_text(json.dumps({"widthUnits": [1, 2, 3, 4, 5], "poolFiles": {}}))
        (out / "unrelated.json").write_text(json.dumps({"foo": 1}))
        build(tmp_path, word_engine, script_engine, manifest_file="pools.json")
        assert not (out / "old-manifest.json").exists()
        assert (out / "unrelated.json").exists()
        assert (out / "pools.json").is_file()

    def test_bad_source_date_epoch_fails_before_clearing(
        self, tmp_path, word_engine, script_engine, monkeypatch
    ) -> None:
        monkeypatch.setenv("SOURCE_DATE_EPOCH", "not-a-number")
        out = tmp_path / "out"
        out.mkdir()
        (out / pool_file_name(1)).write_text("stale")
        options = PoolBuildOptions(per_pool=1, base_count=5, seed=1, out_dir=out)
        builder = GlyphPoolBuilder(options, word_engine, script_engine, show_progress=False)
        with pytest.raises(InvalidArgumentError):
            builder.build()
        assert (out / pool_file_name(1)).read_text() == "stale"
        assert not (out / POOL_MANIFEST_FILE).exists()

    def test_accumulation_log_reports_unique_hashes(self, tmp_path, word_engine, script_engine, caplog) -> None:
        caplog.set_level(logging.INFO, logger="glyphgen.pool_builder")
        build(tmp_path, word_engine, script_engine)
        assert any("unique hashes" in record.getMessage() for record in caplog.records)
