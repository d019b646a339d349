"""
Tests for Device construction and vendor handle capabilities.
"""
from datetime import datetime
from unittest.mock import patch

import pytest

from devman.cli.negotiator import ConnectionNegotiator
from devman.cli.params import CliParams
from devman.core.device import Device, DeviceConfigError
from devman.snmp.client import SnmpType, SnmpValue
from devman.snmp.oids import InterfaceOIDs, NetSnmpOIDs, SystemOIDs
from devman.vendors.base import DeviceHandle, SystemInfo, UnsupportedError, system_targets
from devman.vendors.cisco.device import CiscoDevice
from devman.vendors.nosnmp.device import EcsDevice
from devman.web.client import WebClient

from conftest import FakeTransport, integer, octets, oid_value

CISCO_ID = "1.3.6.1.4.1.9.1.1208"
CISCO_DESCR = (
    "Cisco IOS Software, C2960S Software (C2960S-UNIVERSALK9-M), "
    "Version 15.2(2)E7, RELEASE SOFTWARE (fc3)"
)


def system_group(**overrides):
    data = {
        SystemOIDs.SYS_DESCR: octets(CISCO_DESCR),
        SystemOIDs.SYS_OBJECT_ID: oid_value(CISCO_ID),
        SystemOIDs.SYS_UPTIME: SnmpValue(SnmpType.TIME_TICKS, 360000),
        SystemOIDs.SYS_CONTACT: octets("noc@example.net"),
        SystemOIDs.SYS_NAME: octets("access-sw7"),
        SystemOIDs.SYS_LOCATION: octets("Rack 4"),
    }
    data.update(overrides)
    return data


class TestDeviceInit:
    """Device parameter validation."""

    @pytest.mark.parametrize("ip", ["", "10.0.0", "router1", "300.1.1.1"])
    def test_invalid_ip(self, settings, ip):
        with pytest.raises(DeviceConfigError, match="valid ip"):
            Device(ip, settings=settings)

    def test_ipv6(self, settings):
        assert Device("2001:db8::1", settings=settings).ip == "2001:db8::1"

    @pytest.mark.parametrize("identity", ["1.3.6.x", "enterprise", "no_snmp"])
    def test_invalid_identity(self, settings, identity):
        with pytest.raises(DeviceConfigError, match="not valid sysobjectid"):
            Device("192.0.2.10", sys_object_id=identity, settings=settings)

    def test_debug_level(self, settings, monkeypatch):
        monkeypatch.setenv("DEVMAN_DEBUG", "2")
        assert Device("192.0.2.10", settings=settings).debug == 2

    def test_debug_level_not_integer(self, settings, monkeypatch):
        monkeypatch.setenv("DEVMAN_DEBUG", "verbose")
        with pytest.raises(DeviceConfigError, match="DEVMAN_DEBUG"):
            Device("192.0.2.10", settings=settings)

    def test_timezone(self, settings):
        device = Device("192.0.2.10", timezone="America/New_York", settings=settings)
        assert device.timezone == "America/New_York"

    def test_unknown_timezone_falls_back(self, settings, caplog):
        device = Device("192.0.2.10", timezone="Mars/Olympus_Mons", settings=settings)
        assert device.timezone == settings.default_timezone
        assert "unknown timezone" in caplog.text

    def test_caller_params_untouched(self, make_device):
        params = CliParams(username="admin", password="secret")
        device, _ = make_device(sys_object_id=CISCO_ID, cli_params=params)

        prepared = device.morph().cli_prepare()

        assert prepared.pre_cmds == ("terminal length 0", "terminal width 132")
        assert prepared.disconnect_cmds == ("end", "exit")
        assert prepared.port == 22
        assert params.pre_cmds is None
        assert params.port == 0


class TestMorph:
    """Device.morph()"""

    def test_cisco_handle(self, make_device):
        device, _ = make_device(sys_object_id=CISCO_ID)

        handle = device.morph()

        assert isinstance(handle, CiscoDevice)
        assert device.morph() is handle
        assert device.cli.defaults is CiscoDevice.cli_defaults

    def test_cli_run_through_handle(self, make_device):
        transport = FakeTransport({"show clock": "*10:15:02.123 UTC Mon Oct 19 2026\nsw# "}, banner="sw# ")
        params = CliParams(username="admin", password="secret", timeout=1)
        device, _ = make_device(sys_object_id=CISCO_ID, cli_params=params)

        with patch.object(ConnectionNegotiator, "open_transport", return_value=transport):
            transcript = device.morph().run_cmds(["show clock", "exit"])

        assert transcript == ["show clock", "*10:15:02.123 UTC Mon Oct 19 2026\n", "exit", ""]
        assert transport.lines == [
            "terminal length 0", "terminal width 132", "show clock", "exit", "end", "exit",
        ]
        assert transport.closed

    def test_generic_handle_limits(self, make_device):
        device, _ = make_device(snmp_credential=None)
        handle = device.morph()
        assert type(handle) is DeviceHandle
        with pytest.raises(UnsupportedError):
            handle.system()
        with pytest.raises(UnsupportedError):
            handle.sw_version()


class TestSystem:
    """SnmpDevice.system() and friends."""

    def test_all(self, make_device):
        device, fake = make_device(system_group(), sys_object_id=CISCO_ID)

        info = device.morph().system()

        assert info.descr == CISCO_DESCR
        assert info.object_id == CISCO_ID
        assert info.name == "access-sw7"
        assert info.location == "Rack 4"
        assert info.contact == "noc@example.net"
        assert info.uptime == 360000
        assert len(fake.get_calls) == 2

    def test_uptime_string(self, make_device):
        device, _ = make_device(system_group(), sys_object_id=CISCO_ID, timezone="UTC")

        info = device.morph().system(["UpTime"])

        started = datetime.fromisoformat(info.uptime_str)
        age = datetime.now(started.tzinfo) - started
        assert 3590 <= age.total_seconds() <= 3610
        assert info.to_dict().keys() == {"uptime", "uptime_str"}

    def test_gauge_uptime(self, make_device):
        data = system_group()
        data[SystemOIDs.SYS_UPTIME] = SnmpValue(SnmpType.GAUGE32, 100)
        device, _ = make_device(data, sys_object_id="1.3.6.1.4.1.2281.1.20.2.2.10")
        assert device.morph().system(["UpTime"]).uptime == 100

    def test_targets(self):
        assert system_targets(["Descr", "Name", "Bogus"]) == ["1.0", "5.0"]
        assert len(system_targets(["All"])) == 6

    def test_if_number(self, make_device):
        device, _ = make_device({InterfaceOIDs.IF_NUMBER: integer(52)}, sys_object_id=CISCO_ID)
        assert device.morph().if_number() == 52

    def test_to_dict_drops_unset(self):
        assert SystemInfo(name="sw1").to_dict() == {"name": "sw1"}


class TestSwVersion:
    """Vendor software version lookups."""

    def test_cisco(self, make_device):
        device, _ = make_device(system_group(), sys_object_id=CISCO_ID)
        assert device.morph().sw_version() == "15.2(2)E7"

    def test_cisco_unparsable(self, make_device):
        data = system_group(**{SystemOIDs.SYS_DESCR: octets("Cisco Adaptive Security Appliance")})
        device, _ = make_device(data, sys_object_id=CISCO_ID)
        with pytest.raises(UnsupportedError, match="failed to parse"):
            device.morph().sw_version()

    def test_juniper(self, make_device):
        device, _ = make_device(
            {"1.3.6.1.2.1.25.6.3.1.2.2": octets("JUNOS Software Release [18.4R3-S4]")},
            sys_object_id="1.3.6.1.4.1.2636.1.1.1.2.29",
        )
        assert device.morph().sw_version() == "JUNOS Software Release [18.4R3-S4]"

    def test_linux_uname_extend(self, make_device):
        token = "5.117.110.97.109.101"
        device, _ = make_device(
            {
                f"{NetSnmpOIDs.EXTEND_COMMAND}.4.100.105.115.107": octets("/bin/df"),
                f"{NetSnmpOIDs.EXTEND_COMMAND}.{token}": octets("/bin/uname"),
                f"{NetSnmpOIDs.EXTEND_RESULT}.{token}": integer(0),
                f"{NetSnmpOIDs.EXTEND_OUTPUT_LINE}.{token}": octets("4.19.0-arm"),
            },
            sys_object_id=NetSnmpOIDs.LINUX,
        )
        with patch.object(WebClient, "get", return_value=b""):
            assert device.morph().sw_version() == "4.19.0-arm"

    def test_linux_without_extend(self, make_device):
        device, _ = make_device({}, sys_object_id=NetSnmpOIDs.LINUX)
        with patch.object(WebClient, "get", return_value=b""):
            assert device.morph().sw_version() == "Na"

    def test_linux_extend_failed(self, make_device):
        token = "5.117.110.97.109.101"
        device, _ = make_device(
            {
                f"{NetSnmpOIDs.EXTEND_COMMAND}.{token}": octets("/usr/bin/uname"),
                f"{NetSnmpOIDs.EXTEND_RESULT}.{token}": integer(127),
            },
            sys_object_id=NetSnmpOIDs.LINUX,
        )
        with patch.object(WebClient, "get", return_value=b""):
            assert device.morph().sw_version() == "Na"

    def test_ericsson_tn_active_slot(self, make_device):
        table = "1.3.6.1.4.1.193.81.2.7.1.2.1"
        device, _ = make_device(
            {
                f"{table}.5.1": integer(3),
                f"{table}.5.2": integer(7),
                f"{table}.3.1": octets("CXP9010021_1 R33 "),
                f"{table}.3.2": octets("CXP9010021_1 R34 "),
            },
            sys_object_id="1.3.6.1.4.1.193.81.1.1.3",
        )
        assert device.morph().sw_version() == "CXP9010021_1 R34"

    def test_moxa_model_subtree(self, make_device):
        device, _ = make_device(
            {"1.3.6.1.4.1.8691.7.69.1.4.0": octets("V3.9 build 18050514")},
            sys_object_id="1.3.6.1.4.1.8691.7.69",
        )
        assert device.morph().sw_version() == "V3.9 build 18050514"

    def test_eltek_enexus_system(self, make_device):
        device, _ = make_device(
            {
                "1.3.6.1.4.1.12148.10.2.4.0": octets("power@example.net"),
                "1.3.6.1.4.1.12148.10.2.5.0": octets("Site 12"),
                "1.3.6.1.4.1.12148.10.2.6.0": octets(" Smartpack2 Master "),
                "1.3.6.1.4.1.12148.10.13.8.2.1.8.1": octets(" 4.4 "),
            },
            sys_object_id="1.3.6.1.4.1.12148.10",
        )
        handle = device.morph()
        info = handle.system()
        assert info.descr == "Smartpack2 Master"
        assert info.location == "Site 12"
        assert info.object_id == "1.3.6.1.4.1.12148.10"
        assert handle.sw_version() == "4.4"

    def test_unsupported_vendor(self, make_device):
        device, _ = make_device(sys_object_id="1.3.6.1.4.1.193.223.2.1")
        with pytest.raises(UnsupportedError):
            device.morph().sw_version()


class TestEcs:
    """Web-only ECS meter."""

    STATUS = b"<status><type>Energy Meter</type><name>meter-3</name></status>"

    def test_v1_system(self, make_device):
        device, _ = make_device(sys_object_id="no-snmp-ecs")

        with patch.object(WebClient, "get", return_value=self.STATUS) as mock_get:
            handle = device.morph()
            assert isinstance(handle, EcsDevice)
            info = handle.system()
            handle.system()

        assert info.descr == "Energy Meter"
        assert info.name == "meter-3"
        assert mock_get.call_args_list[0].kwargs == {"scheme": "http"}
        # version detection is cached, status.xml fetched once per system()
        assert mock_get.call_count == 3

    def test_v2_detection(self, make_device):
        device, _ = make_device(sys_object_id="no-snmp-ecs")
        replies = {"status.xml": b"<html>eVision</html>", "login.cgi": b'{"access": "granted"}'}

        with patch.object(WebClient, "get", side_effect=lambda p, scheme: replies[p]):
            assert device.morph().ecs_version() == "v2"
            assert device.morph().system().descr == "Energy Meter v2"

    def test_unidentified(self, make_device):
        device, _ = make_device(sys_object_id="no-snmp-ecs")
        with patch.object(WebClient, "get", return_value=b"<html></html>"):
            with pytest.raises(UnsupportedError, match="identification failed"):
                device.morph().ecs_version()
