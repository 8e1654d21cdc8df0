"""Graph derivation and export for an imported project"""

import json

from topobus import (
    build_project_graphs,
    generate_group_address_graph,
    generate_topology_graph,
    load_knxproj_bytes,
)
from topobus.exporters import JsonExporter
from topobus.models.graph import NodeKind


class TestProjectGraphs:

    def test_topology_graph(self, knxproj_bytes):
        graph = generate_topology_graph(load_knxproj_bytes(knxproj_bytes))

        assert graph.edges == []
        assert [n.id for n in graph.nodes] == [
            "area_1",
            "line_1_1",
            "device_1_1_0",
            "device_1_1_1",
            "device_1_1_2",
            "area_unknown",
            "line_unknown_unknown",
            "device_DI-5",
        ]
        line = graph.node("line_1_1")
        assert line.properties['name'] == "Ground floor line"
        assert line.properties['medium'] == "TP"
        assert graph.node("device_1_1_0").properties['coupler_kind'] == "line"

    def test_group_address_graph(self, knxproj_bytes):
        graph = generate_group_address_graph(load_knxproj_bytes(knxproj_bytes))

        assert len(graph.nodes_of_kind(NodeKind.DEVICE)) == 4
        assert [n.id for n in graph.nodes_of_kind(NodeKind.GROUP_OBJECT)] == [
            "device_1_1_1_obj_0",
            "device_1_1_2_obj_0",
            "device_1_1_2_obj_1",
        ]
        assert len(graph.nodes_of_kind(NodeKind.GROUP_ADDRESS)) == 2

        edge, = graph.edges
        assert edge.source == "device_1_1_2_obj_0"
        assert edge.target == "device_1_1_1_obj_0"
        assert edge.label == "directed"
        assert edge.properties['group_address'] == "1/1/1"

    def test_aggregate(self, knxproj_bytes):
        project = load_knxproj_bytes(knxproj_bytes)
        graphs = build_project_graphs(project)

        assert graphs.project_name == "Demo House"
        assert graphs.devices is project.devices
        assert graphs.group_addresses is project.group_addresses
        assert graphs.locations is project.locations

        data = graphs.to_dict()
        assert set(data) == {
            'project_name', 'project_info', 'topology_graph', 'group_address_graph',
            'devices', 'group_addresses', 'locations',
        }
        assert data['project_info']['tags'] == [{'text': "residential", 'color': "#00FF00"}]

    def test_graphs_are_deterministic(self, knxproj_bytes):
        first = build_project_graphs(load_knxproj_bytes(knxproj_bytes)).to_dict()
        second = build_project_graphs(load_knxproj_bytes(knxproj_bytes)).to_dict()
        assert first == second


class TestJsonExport:

    def test_export_file(self, knxproj_bytes, temp_output_dir):
        graphs = build_project_graphs(load_knxproj_bytes(knxproj_bytes))

        path = JsonExporter(str(temp_output_dir)).export(graphs, "demo.json")

        assert path == temp_output_dir / "demo.json"
        data = json.loads(path.read_text(encoding='utf-8'))
        assert data['project_name'] == "Demo House"
        assert len(data['devices']) == 4
        assert data['group_address_graph']['edges'][0]['kind'] == "links"
        assert data['topology_graph']['nodes'][1]['parent_id'] == "area_1"

    def test_dumps_project_model(self, knxproj_bytes, temp_output_dir):
        project = load_knxproj_bytes(knxproj_bytes)
        text = JsonExporter(str(temp_output_dir), indent=None).dumps(project)
        assert json.loads(text)['group_addresses'][1]['datapoint_type'] == "DPST-1-1"

    def test_creates_output_directory(self, tmp_path):
        JsonExporter(str(tmp_path / "nested" / "out"))
        assert (tmp_path / "nested" / "out").is_dir()
