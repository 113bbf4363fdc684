from pathlib import Path

from nexgen.core.config import DEFAULT_HEADERS_TEMPLATE, PipelineConfig, load_pipeline_config


def test_pipeline_sample_loads() -> None:
    """Ensure the shipped pipeline YAML matches the PipelineConfig schema and defaults."""

    repo_root = Path(__file__).resolve().parents[1]
    sample_path = repo_root / "config" / "canvas_pipeline.yaml"

    config = load_pipeline_config(sample_path)

    assert config == PipelineConfig()
    assert config.sessions.headers_template == DEFAULT_HEADERS_TEMPLATE
