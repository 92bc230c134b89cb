"""Tests for the command line interface."""

import json
from io import BytesIO

import pytest
from PIL import Image
from typer.testing import CliRunner

from gh_snake_overlay.cli import FRAME_DURATION_ENV, app

runner = CliRunner()


def _input_payload(**config) -> dict:
    weeks = [
        {"days": [{"level": 1, "count": 2}]},
        {"days": [{"level": 0, "count": 0}]},
        {"days": [{"level": 3, "count": 5}]},
    ]
    payload = {"contributions": {"weeks": weeks}, "path": [[0, 0], [1, 0], [2, 0]]}
    if config:
        payload["config"] = config
    return payload


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(FRAME_DURATION_ENV, raising=False)
    return tmp_path


def _write_input(workdir, payload, name="input.json"):
    (workdir / name).write_text(json.dumps(payload), encoding="utf-8")
    return name


def test_missing_input_file_errors(workdir):
    """Should error when no input file is given."""
    result = runner.invoke(app, [])

    assert result.exit_code == 1
    assert "Input file is required" in result.output


def test_unknown_input_file_errors(workdir):
    """Should error when the input file does not exist."""
    result = runner.invoke(app, ["missing.json"])

    assert result.exit_code == 1
    assert "File 'missing.json' not found" in result.output


def test_invalid_json_errors(workdir):
    """Should error when the input is not valid JSON."""
    (workdir / "broken.json").write_text("{nope", encoding="utf-8")

    result = runner.invoke(app, ["broken.json"])

    assert result.exit_code == 1
    assert "Invalid JSON" in result.output


def test_compiles_to_json(workdir):
    """Should write a JSON overlay with the loop duration."""
    name = _write_input(workdir, _input_payload())

    result = runner.invoke(app, [name, "-o", "overlay.json", "--no-embed-assets"])

    assert result.exit_code == 0, result.output
    payload = json.loads((workdir / "overlay.json").read_text(encoding="utf-8"))
    assert payload["durationMs"] == 300
    assert len(payload["fragments"]) == 27
    assert "saved to overlay.json" in result.output


def test_compiles_to_text_by_default(workdir):
    """Should write overlay.txt when no output is given."""
    name = _write_input(workdir, _input_payload())

    result = runner.invoke(app, [name, "--no-embed-assets"])

    assert result.exit_code == 0, result.output
    assert (workdir / "overlay.txt").read_text(encoding="utf-8").startswith("<style>")


def test_frame_duration_option_overrides_config(workdir):
    """--frame-duration should win over the configured duration."""
    name = _write_input(workdir, _input_payload(animationFrameDurationMs=80))

    result = runner.invoke(app, [name, "-o", "o.json", "--frame-duration", "50", "--no-embed-assets"])

    assert result.exit_code == 0, result.output
    assert json.loads((workdir / "o.json").read_text(encoding="utf-8"))["durationMs"] == 150


def test_frame_duration_env_is_a_default(workdir, monkeypatch):
    """The environment should only set the duration when the config does not."""
    monkeypatch.setenv(FRAME_DURATION_ENV, "200")
    plain = _write_input(workdir, _input_payload(), "plain.json")
    configured = _write_input(workdir, _input_payload(animationFrameDurationMs=10), "configured.json")

    runner.invoke(app, [plain, "-o", "plain_out.json", "--no-embed-assets"])
    runner.invoke(app, [configured, "-o", "configured_out.json", "--no-embed-assets"])

    assert json.loads((workdir / "plain_out.json").read_text(encoding="utf-8"))["durationMs"] == 600
    assert json.loads((workdir / "configured_out.json").read_text(encoding="utf-8"))["durationMs"] == 30


def test_invalid_frame_duration_env_errors(workdir, monkeypatch):
    """A non-numeric environment value should be reported."""
    monkeypatch.setenv(FRAME_DURATION_ENV, "fast")
    name = _write_input(workdir, _input_payload())

    result = runner.invoke(app, [name, "--no-embed-assets"])

    assert result.exit_code == 1
    assert "must be a number" in result.output


def test_config_file_overrides_input_config(workdir):
    """Options from --config should replace those in the input."""
    name = _write_input(workdir, _input_payload(snakeLength=4))
    (workdir / "cfg.json").write_text(json.dumps({"snakeLength": 1}), encoding="utf-8")

    result = runner.invoke(app, [name, "-c", "cfg.json", "-o", "o.json", "--no-embed-assets"])

    assert result.exit_code == 0, result.output
    assert len(json.loads((workdir / "o.json").read_text(encoding="utf-8"))["fragments"]) == 21 + 2 + 1


def test_unsupported_output_extension_errors(workdir):
    """Should error for output formats without a provider."""
    name = _write_input(workdir, _input_payload())

    result = runner.invoke(app, [name, "-o", "overlay.svg", "--no-embed-assets"])

    assert result.exit_code == 1
    assert "Unsupported output format" in result.output


def test_invalid_config_errors(workdir):
    """Contradictory options should be reported as an invalid config."""
    name = _write_input(workdir, _input_payload(cellSizePx=10, dotSizePx=12))

    result = runner.invoke(app, [name, "--no-embed-assets"])

    assert result.exit_code == 1
    assert "Invalid config" in result.output


def test_broken_display_is_a_warning(workdir):
    """A broken counter display should warn but still write the overlay."""
    name = _write_input(
        workdir,
        _input_payload(counterConfig={"displays": [{"position": "nowhere"}]}),
    )

    result = runner.invoke(app, [name, "-o", "o.json", "--no-embed-assets"])

    assert result.exit_code == 0, result.output
    assert "Warning:" in result.output
    errors = json.loads((workdir / "o.json").read_text(encoding="utf-8"))["displayErrors"]
    assert [error["display"] for error in errors] == [0]


def test_local_images_are_embedded(workdir):
    """Local counter images should be embedded as data URIs."""
    buffer = BytesIO()
    Image.new("RGBA", (4, 4), (0, 255, 0, 255)).save(buffer, format="PNG")
    (workdir / "star.png").write_bytes(buffer.getvalue())
    name = _write_input(
        workdir,
        _input_payload(counterConfig={"displays": [{"prefix": "{img:0}", "images": [{"url": "star.png"}]}]}),
    )

    result = runner.invoke(app, [name, "-o", "o.json"])

    assert result.exit_code == 0, result.output
    definitions = json.loads((workdir / "o.json").read_text(encoding="utf-8"))["definitions"]
    assert len(definitions) == 1
    assert 'href="data:image/png;base64,' in definitions[0]
