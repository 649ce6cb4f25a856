"""
Design Compression: lossless factoring of repeated component instances.

A design tree exported from a design tool repeats the same component over and
over (buttons, cards, list rows). This package turns every group of instances
into one shared template plus the few values that differ per instance
("slots"), optionally replaces their absolute positions with a detected grid,
and reconstructs the original tree exactly.

Pipeline:
- Component Grouper: buckets instances by component id
- Template Builder: aligns the instance subtrees and drafts the template
- Slot Detector: finds the properties that vary across instances
- Grid Pattern Detector: recognizes rows, columns and matrices
- Instance Encoder: component reference + overrides per instance, in rounds
  that look inside instances left literal
- Expander: fills the templates back in
- Hints: readable slot names and code generation hints
- Validator: checks that the round trip preserved the tree

Example Usage:
    >>> from design_compression import Design, compress_design, expand_design, validate_expansion
    >>> result = compress_design(Design("Page", nodes))
    >>> print(result.stats)
    >>> restored = expand_design(result.design)
    >>> validate_expansion(nodes, restored.nodes)
    True
"""

from __future__ import annotations

# Configuration and errors
from design_compression.config import CompressionOptions, GridDetectionConfig
from design_compression.errors import (
    CompressionError,
    MalformedDesignError,
    StructuralMismatch,
)

# Values and nodes
from design_compression.primitives import (
    FillsValue,
    Layout,
    LayoutValue,
    OpacityValue,
    PropertyValue,
    SlotReference,
    SlotValue,
    StrokesValue,
    TextValue,
    ValueType,
    VisibilityValue,
    slot_value,
    values_equal,
)
from design_compression.nodes import Design, DesignNode, TemplateNode
from design_compression.paths import NodePath, parse_path

# Compressed form
from design_compression.slots import SlotDefinition, detect_slots
from design_compression.grid import (
    GridDetectionResult,
    GridLayout,
    GridPosition,
    detect_grid,
    grid_to_css,
)
from design_compression.design import (
    ComponentDefinition,
    CompressedDesign,
    CompressedInstance,
)

# Pipeline
from design_compression.grouping import ComponentGroup, group_instances
from design_compression.templates import align_instances, build_template
from design_compression.encoding import (
    ForestEncoding,
    encode_forest,
    encode_group,
    encode_instance,
)
from design_compression.compression import (
    CompressionResult,
    CompressionStats,
    compress_design,
)
from design_compression.expansion import apply_overrides, expand_design, expand_instance
from design_compression.hints import CodeHint, code_hint, semantic_names
from design_compression.validation import find_mismatch, validate_expansion

# Serialization and diagnostics
from design_compression.serialization import (
    compressed_from_dict,
    compressed_to_dict,
    design_from_dict,
    design_to_dict,
    dumps,
    loads,
)
from design_compression.analysis import (
    analyze_components,
    component_hierarchy,
    mark_nodes_for_extraction,
    should_extract_as_component,
    compression_report,
    expansion_summary,
)

__all__ = [
    "CompressionOptions",
    "GridDetectionConfig",
    "CompressionError",
    "MalformedDesignError",
    "StructuralMismatch",
    "FillsValue",
    "Layout",
    "LayoutValue",
    "OpacityValue",
    "PropertyValue",
    "SlotReference",
    "SlotValue",
    "StrokesValue",
    "TextValue",
    "ValueType",
    "VisibilityValue",
    "slot_value",
    "values_equal",
    "Design",
    "DesignNode",
    "TemplateNode",
    "NodePath",
    "parse_path",
    "SlotDefinition",
    "detect_slots",
    "GridDetectionResult",
    "GridLayout",
    "GridPosition",
    "detect_grid",
    "grid_to_css",
    "ComponentDefinition",
    "CompressedDesign",
    "CompressedInstance",
    "ComponentGroup",
    "group_instances",
    "align_instances",
    "build_template",
    "ForestEncoding",
    "encode_forest",
    "encode_group",
    "encode_instance",
    "CompressionResult",
    "CompressionStats",
    "compress_design",
    "apply_overrides",
    "expand_design",
    "expand_instance",
    "CodeHint",
    "code_hint",
    "semantic_names",
    "find_mismatch",
    "validate_expansion",
    "compressed_from_dict",
    "compressed_to_dict",
    "design_from_dict",
    "design_to_dict",
    "dumps",
    "loads",
    "analyze_components",
    "component_hierarchy",
    "mark_nodes_for_extraction",
    "should_extract_as_component",
    "compression_report",
    "expansion_summary",
]
