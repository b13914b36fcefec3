"""Tests for the data-flow validator."""

from __future__ import annotations

from flowwarden.graph import Connection, ConnectionGraph
from flowwarden.validators import DataFlowValidator, IssueKind, Severity
from flowwarden.validators.dataflow import MISSING_DEPENDENCY_LABEL, MISSING_FIELDS_LABEL
from tests._fixtures.project_builder import NODES_DIR, ProjectBuilder, component_source


def _cat_and_dog(project_builder: ProjectBuilder, *, cat_body: str = "", dog_body: str = ""):
    project_builder.component("input", "CatNode.jsx", component_source("CatNode", outputs=("out",), body=cat_body))
    project_builder.component(
        "process", "DogNode.jsx", component_source("DogNode", inputs={"in": "CatNode"}, body=dog_body)
    )
    project = project_builder.project()
    return project, project.build_registry()


def test_silent_source_raises_exactly_one_source_not_writing(project_builder: ProjectBuilder) -> None:
    _, registry = _cat_and_dog(project_builder)
    graph = ConnectionGraph(
        name="pets",
        connections=[Connection(source="catNode", target="dogNode", source_port="out", target_port="in")],
    )

    issues = DataFlowValidator().validate(registry, graph)

    assert len(registry) == 2
    assert [issue.kind for issue in issues] == [IssueKind.SOURCE_NOT_WRITING]
    issue = issues[0]
    assert issue.severity is Severity.WARNING
    assert issue.target == "dogNode"
    assert issue.source == "catNode"
    assert issue.fields == ["out"]
    assert issue.file == f"{NODES_DIR}/input/CatNode.jsx"
    assert issue.details == f"{NODES_DIR}/input/CatNode.jsx {MISSING_FIELDS_LABEL} out"


def test_registry_sources_form_the_default_graph(project_builder: ProjectBuilder) -> None:
    project, _ = _cat_and_dog(project_builder)

    report = project.validate_dataflow()

    assert report.processed == 1
    assert [(issue.kind, issue.fields) for issue in report.issues] == [(IssueKind.SOURCE_NOT_WRITING, ["in"])]


def test_read_without_trigger_is_missing_dependency(project_builder: ProjectBuilder) -> None:
    cat_body = """
    const emit = () => {
      setNodes((nds) => nds.map((n) => (n.id === id ? { ...n, data: { ...n.data, out: 'meow' } } : n)));
    };
    """
    dog_body = """
    useEffect(() => {
      bark(data.out);
    }, [data.other]);
    """
    _, registry = _cat_and_dog(project_builder, cat_body=cat_body, dog_body=dog_body)
    graph = ConnectionGraph(
        name="pets",
        connections=[Connection(source="catNode", target="dogNode", source_port="out", target_port="in")],
    )

    issues = DataFlowValidator().validate(registry, graph)

    assert [issue.kind for issue in issues] == [IssueKind.MISSING_DEPENDENCY]
    issue = issues[0]
    assert issue.file == f"{NODES_DIR}/process/DogNode.jsx"
    assert issue.line is not None
    assert issue.details.endswith(f"{MISSING_DEPENDENCY_LABEL} data.out")


def test_tracked_read_and_matching_write_are_clean(project_builder: ProjectBuilder) -> None:
    cat_body = """
    const payload = { out: 'meow' };
    setNodes((nds) => nds.map((n) => ({ ...n, data: payload })));
    """
    dog_body = """
    useEffect(() => {
      bark(data.out);
    }, [data.out]);
    """
    _, registry = _cat_and_dog(project_builder, cat_body=cat_body, dog_body=dog_body)
    graph = ConnectionGraph(name="pets", connections=[Connection(source="catNode", target="dogNode", source_port="out")])

    assert DataFlowValidator().validate(registry, graph) == []


def test_unknown_endpoints_and_ports(project_builder: ProjectBuilder) -> None:
    _, registry = _cat_and_dog(project_builder)
    graph = ConnectionGraph(
        name="broken",
        connections=[
            Connection(source="ghostNode", target="dogNode", fields=["x"]),
            Connection(source="catNode", target="ghostNode", fields=["x"]),
            Connection(source="catNode", target="dogNode", source_port="wrong", target_port="in", fields=["out"]),
        ],
    )

    issues = DataFlowValidator().validate(registry, graph)
    kinds = [issue.kind for issue in issues]

    assert kinds[:2] == [IssueKind.MISSING_SOURCE, IssueKind.MISSING_TARGET]
    assert issues[0].is_error and issues[1].is_error
    assert IssueKind.DATA_FLOW_BREAK in kinds
    assert IssueKind.SOURCE_NOT_WRITING in kinds


def test_component_issues_need_no_graph(project_builder: ProjectBuilder) -> None:
    dog_body = """
    const [mood, setMood] = useState(data.mood);
    useEffect(() => {
      bark(data.volume, data.pitch);
    }, [data.pitch]);
    """
    _, registry = _cat_and_dog(project_builder, dog_body=dog_body)

    issues = DataFlowValidator().component_issues(registry.nodes["dogNode"])

    assert [(issue.kind, issue.fields) for issue in issues] == [
        (IssueKind.MISSING_DEPENDENCY, ["volume"]),
        (IssueKind.ONE_WAY_SYNC, ["mood"]),
    ]
    assert all(issue.severity is Severity.WARNING for issue in issues)
    assert issues[0].details == f"{NODES_DIR}/process/DogNode.jsx {MISSING_DEPENDENCY_LABEL} data.volume"
    assert DataFlowValidator().component_issues(registry.nodes["catNode"]) == []
