"""Tests for topology, project information and building structure"""

import logging

from topobus.parsers.project import extract_locations, extract_project_info, extract_project_name
from topobus.parsers.topology import extract_topology_metadata
from topobus.parsers.xml_utils import parse_xml
from knxproj_factory import DATA_XML, PROJECT_XML


class TestTopologyMetadata:

    def test_sample_topology(self):
        areas, lines = extract_topology_metadata(parse_xml(DATA_XML))

        assert [(a.address, a.name) for a in areas] == [("1", "Main building")]
        assert len(lines) == 1
        assert lines[0].key == "1.1"
        assert lines[0].name == "Ground floor line"
        assert lines[0].medium_type == "TP"

    def test_segment_medium_wins(self):
        doc = parse_xml("""<KNX><Area Address="0"><Line Address="0" MediumTypeRefId="MT-0">
            <Segment MediumTypeRefId="MT-5" /></Line></Area></KNX>""")
        _, lines = extract_topology_metadata(doc)
        assert lines[0].medium_type == "IP"

    def test_invalid_elements_are_skipped(self, caplog):
        doc = parse_xml("""<KNX>
          <Area Name="No address"><Line Address="1" /></Area>
          <Area Address="2"><Line Name="No address" /><Line Address="3" /></Area>
          <Line Address="9" />
        </KNX>""")
        with caplog.at_level(logging.WARNING):
            areas, lines = extract_topology_metadata(doc)

        assert [a.address for a in areas] == ["2"]
        assert [line.key for line in lines] == ["2.3"]
        assert "Skipping Area" in caplog.text
        assert "Missing ancestor 'Area' for Line" in caplog.text


class TestProjectInformation:

    def test_project_name(self):
        assert extract_project_name(parse_xml(PROJECT_XML)) == "Demo House"
        blank = parse_xml("<KNX><Project><ProjectInformation Name='  ' /></Project></KNX>")
        assert extract_project_name(blank, "Fallback") == "Fallback"

    def test_project_info(self):
        info = extract_project_info(parse_xml(PROJECT_XML), parse_xml(DATA_XML))

        assert info.name == "Demo House"
        assert info.project_number == "42"
        assert info.group_address_style == "ThreeLevel"
        assert info.completion_status == "Editing"
        assert info.bcu_key == "4294967295"
        assert [(t.text, t.color) for t in info.tags] == [("residential", "#00FF00")]
        assert info.history[0].user == "installer"
        assert info.attachments == []

    def test_attachments_from_either_document(self):
        project = parse_xml("<KNX><Project><ProjectInformation Name='A' />"
                            "<UserFiles><UserFile Filename='plan.pdf' Comment='Ground floor' /></UserFiles>"
                            "</Project></KNX>")
        data = parse_xml("<KNX><UserFile Filename='notes.txt' /><UserFile Comment='no name' /></KNX>")
        info = extract_project_info(project, data)
        assert [a.filename for a in info.attachments] == ["plan.pdf", "notes.txt"]
        assert info.attachments[0].comment == "Ground floor"

    def test_no_metadata(self):
        assert extract_project_info(parse_xml("<KNX><Project /></KNX>")) is None

    def test_serialization_omits_empty_fields(self):
        info = extract_project_info(parse_xml("<KNX><ProjectInformation Name='A' /></KNX>"))
        assert info.to_dict() == {'name': "A"}


class TestLocations:

    def test_space_tree(self):
        device_index = {"P-0001-0_DI-2": ("1.1.2", "Kitchen actuator")}
        roots = extract_locations(parse_xml(DATA_XML), device_index)

        assert len(roots) == 1
        house = roots[0]
        assert (house.name, house.space_type) == ("House", "Building")
        names = [space.name for space in house.iter_spaces()]
        assert names == ["House", "Ground floor", "Kitchen"]

        kitchen = house.children[0].children[0]
        assert kitchen.number == "0.01"
        assert kitchen.devices[0].address == "1.1.2"
        assert kitchen.devices[0].name == "Kitchen actuator"

    def test_ets5_building_parts(self):
        doc = parse_xml("""<KNX><Buildings>
          <BuildingPart Id="BP-1" Name="Office" Type="Building">
            <BuildingPart Id="BP-2" Name="Hall" Type="Corridor" DefaultLine="1.1">
              <DeviceInstanceRef RefId="DI-404" />
            </BuildingPart>
          </BuildingPart>
          <BuildingPart Id="BP-3" />
        </Buildings></KNX>""")
        roots = extract_locations(doc, {})

        assert [root.id for root in roots] == ["BP-1", "BP-3"]
        hall = roots[0].children[0]
        assert hall.default_line == "1.1"
        assert hall.devices[0].instance_id == "DI-404"
        assert hall.devices[0].address is None
        assert roots[1].space_type == "Space"
