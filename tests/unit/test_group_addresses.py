"""Tests for group address extraction and backfill"""

import logging

from topobus.ets_helpers import GroupAddressStyle
from topobus.models import DeviceInfo, GroupAddressInfo, GroupLink
from topobus.parsers.group_addresses import backfill_group_addresses, extract_group_addresses
from topobus.parsers.xml_utils import parse_xml

GROUP_ADDRESSES_XML = """<KNX xmlns="http://knx.org/xml/project/21">
  <GroupAddresses>
    <GroupRanges>
      <GroupRange Name="Lighting" Description="All lights" Comment="main">
        <GroupRange Name="Kitchen" Comment="middle">
          <GroupAddress Id="P-01-0_GA-1" Address="bad" Name="Broken" />
          <GroupAddress Id="P-01-0_GA-2" Address="2305" Name="Ceiling" DatapointType="DPST-1-1" />
          <GroupAddress Id="P-01-0_GA-3" Address="70000" Name="Too big" />
        </GroupRange>
      </GroupRange>
      <GroupRange Name="Flat">
        <GroupAddress Id="P-01-0_GA-4" Address="4096" Name=" Scene " Description="Scene select" />
        <GroupAddress Address="4097" Name="No id" />
      </GroupRange>
    </GroupRanges>
  </GroupAddresses>
</KNX>
"""


class TestExtractGroupAddresses:

    def test_invalid_addresses_are_skipped(self, caplog):
        xml = """<KNX><GroupAddresses>
          <GroupAddress Id="GA-1" Address="bad" Name="A" />
          <GroupAddress Id="GA-2" Address="70000" Name="B" />
          <GroupAddress Id="GA-3" Address="1" Name="C" />
        </GroupAddresses></KNX>"""
        with caplog.at_level(logging.WARNING):
            group_addresses, by_id = extract_group_addresses(parse_xml(xml))

        assert [ga.name for ga in group_addresses] == ["C"]
        assert list(by_id) == ["GA-3"]
        assert "Invalid attribute 'Address' on GroupAddress: 'bad'" in caplog.text
        assert "'70000'" in caplog.text

    def test_range_context(self):
        group_addresses, by_id = extract_group_addresses(parse_xml(GROUP_ADDRESSES_XML))

        assert [ga.address for ga in group_addresses] == ["1/1/1", "2/0/0"]
        ceiling = by_id["GA-2"]
        assert ceiling.name == "Ceiling"
        assert ceiling.main_group_name == "Lighting"
        assert ceiling.main_group_description == "All lights"
        assert ceiling.main_group_comment == "main"
        assert ceiling.middle_group_name == "Kitchen"
        assert ceiling.middle_group_comment == "middle"
        assert ceiling.datapoint_type == "DPST-1-1"

        scene = by_id["GA-4"]
        assert scene.name == "Scene"
        assert scene.main_group_name == "Flat"
        assert scene.middle_group_name is None
        assert scene.description == "Scene select"

    def test_missing_id_is_skipped(self):
        group_addresses, _ = extract_group_addresses(parse_xml(GROUP_ADDRESSES_XML))
        assert "No id" not in [ga.name for ga in group_addresses]

    def test_style_selection(self):
        group_addresses, _ = extract_group_addresses(parse_xml(GROUP_ADDRESSES_XML), GroupAddressStyle.TWO_LEVEL)
        assert [ga.address for ga in group_addresses] == ["1/257", "2/0"]


class TestBackfill:

    def test_linked_devices_and_datapoint_type(self):
        switch = GroupAddressInfo(address="1/1/1", name="Switch")
        status = GroupAddressInfo(address="1/1/2", name="Status", datapoint_type="DPST-1-11")
        unused = GroupAddressInfo(address="1/1/3", name="Unused")
        devices = [
            DeviceInfo(instance_id="DI-1", individual_address="1.1.1", name="Actuator", group_links=[
                GroupLink(object_name="Switch", group_address="1/1/1"),
                GroupLink(object_name="Status", group_address="1/1/2", datapoint_type="DPST-1-1"),
            ]),
            DeviceInfo(instance_id="DI-2", individual_address="1.1.2", name="Button", group_links=[
                GroupLink(object_name="Switch", group_address="1/1/1", datapoint_type="DPST-1-1"),
            ]),
        ]

        backfill_group_addresses([switch, status, unused], devices)

        assert switch.linked_devices == ["1.1.1", "1.1.2"]
        assert switch.datapoint_type == "DPST-1-1"
        assert status.linked_devices == ["1.1.1"]
        assert status.datapoint_type == "DPST-1-11"
        assert unused.linked_devices == []
        assert unused.datapoint_type is None
