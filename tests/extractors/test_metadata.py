"""Tests for component metadata extraction."""

from __future__ import annotations

from pathlib import Path

import pytest

from flowwarden.extractors import ExtractionError, MetadataExtractor
from tests._fixtures.project_builder import NODES_DIR, ProjectBuilder, component_source


def test_extracts_ports_sources_category_and_export(project_builder: ProjectBuilder) -> None:
    path = project_builder.component(
        "process",
        "VideoGenerateNode.jsx",
        component_source(
            "VideoGenerateNode",
            inputs={"prompt-input": "PromptOptimizerNode", "api-config": None},
            outputs=("video-output",),
            label="Video Generate",
        ),
    )

    extractor = MetadataExtractor(project_builder.path())
    result = extractor.extract_file(path)
    record = result.value

    assert record.identity == "videoGenerateNode"
    assert record.file_name == "VideoGenerateNode.jsx"
    assert record.file_path == f"{NODES_DIR}/process/VideoGenerateNode.jsx"
    assert record.category == "process"
    assert record.inputs == ["prompt-input", "api-config"]
    assert record.outputs == ["video-output"]
    assert record.input_sources == {"prompt-input": "promptOptimizerNode"}
    assert record.component_name == "VideoGenerateNode"
    assert record.label == "Video Generate"
    assert record.exists is True
    assert result.confidence == 100
    assert result.gaps == []


def test_handle_attribute_order_does_not_matter(tmp_path: Path) -> None:
    source = """
    export default function SwapNode({ data }) {
      return (
        <>
          <Handle id="in" position={Position.Left} type="target" />
          <Handle
            style={{ top: 10 }}
            id='out'
            type='source'
          />
        </>
      );
    }
    """
    extractor = MetadataExtractor(tmp_path)
    record = extractor.extract_text(tmp_path / "SwapNode.jsx", source).value

    assert record.inputs == ["in"]
    assert record.outputs == ["out"]
    assert record.component_name == "SwapNode"


def test_falls_back_to_adjacent_type_id_pairs(tmp_path: Path) -> None:
    source = """
    const handles = [
      { type="target" id="text-in" },
      { type="source" id="text-out" },
    ];
    const LegacyNode = () => null;
    export default LegacyNode;
    """
    record = MetadataExtractor(tmp_path).extract_text(tmp_path / "LegacyNode.js", source).value

    assert record.inputs == ["text-in"]
    assert record.outputs == ["text-out"]
    assert record.component_name == "LegacyNode"


def test_unrecognised_facts_lower_confidence_instead_of_failing(tmp_path: Path) -> None:
    result = MetadataExtractor(tmp_path).extract_text(tmp_path / "misc" / "OddNode.jsx", "const x = 1;\n")

    assert result.value.category is None
    assert result.value.inputs == []
    assert result.value.component_name is None
    assert set(result.gaps) == {"category", "ports", "component_name", "label"}
    assert result.confidence == 35


def test_unreadable_file_raises_extraction_error(tmp_path: Path) -> None:
    broken = tmp_path / "BrokenNode.jsx"
    broken.write_bytes(b"\xff\xfe\x00bad")

    with pytest.raises(ExtractionError) as excinfo:
        MetadataExtractor(tmp_path).extract_file(broken)
    assert excinfo.value.path == broken
