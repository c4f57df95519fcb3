import pytest

from bac_discover.app.config import AnnounceConfig, DatalinkConfig, DiscoveryConfig
from bac_discover.errors import ConfigurationError
from bac_discover.network.address import GLOBAL_BROADCAST, LOCAL_BROADCAST
from bac_discover.types.enums import Segmentation


class TestDiscoveryConfig:
    def test_defaults(self):
        config = DiscoveryConfig()
        assert config.destination == GLOBAL_BROADCAST
        assert config.low_limit is None
        assert config.high_limit is None
        assert config.retry_count == 0
        assert config.delay_ms == 100
        assert config.effective_timeout_ms == 9000

    def test_single_instance_sets_both_limits(self):
        config = DiscoveryConfig(low_limit=123)
        assert config.high_limit == 123

    def test_explicit_timeout(self):
        assert DiscoveryConfig(timeout_ms=500).effective_timeout_ms == 500

    def test_zero_timeout_uses_default(self):
        config = DiscoveryConfig(timeout_ms=0, apdu_timeout_ms=1000, apdu_retries=2)
        assert config.effective_timeout_ms == 2000

    def test_min_above_max_instance(self):
        config = DiscoveryConfig(low_limit=4194304)
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()
        assert str(exc_info.value) == "device-instance-min=4194304 - not greater than 4194303"

    def test_max_above_max_instance(self):
        config = DiscoveryConfig(low_limit=0, high_limit=5000000)
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()
        assert str(exc_info.value) == "device-instance-max=5000000 - not greater than 4194303"

    def test_negative_instance(self):
        with pytest.raises(ConfigurationError, match="not less than 0"):
            DiscoveryConfig(low_limit=-1).validate()

    def test_max_without_min(self):
        with pytest.raises(ConfigurationError, match="without"):
            DiscoveryConfig(high_limit=5).validate()

    def test_negative_retry(self):
        with pytest.raises(ConfigurationError, match="retry"):
            DiscoveryConfig(retry_count=-1).validate()

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            DiscoveryConfig(delay_ms=-1).validate()

    def test_valid_range(self):
        DiscoveryConfig(low_limit=0, high_limit=4194303).validate()


class TestAnnounceConfig:
    def test_defaults(self):
        config = AnnounceConfig()
        assert config.destination == LOCAL_BROADCAST
        assert config.device_id == 4194303
        assert config.vendor_id == 260
        assert config.max_apdu == 1476
        assert config.segmentation is Segmentation.NONE

    def test_int_segmentation_normalized(self):
        config = AnnounceConfig(segmentation=0)
        config.validate()
        assert config.segmentation is Segmentation.BOTH

    @pytest.mark.parametrize(
        ("field", "value", "match"),
        [
            ("device_id", 4194304, "device-instance"),
            ("vendor_id", 70000, "vendor-id"),
            ("max_apdu", 49, "max-apdu"),
            ("segmentation", 4, "segmentation"),
            ("retry_count", -2, "retry"),
        ],
    )
    def test_invalid(self, field, value, match):
        config = AnnounceConfig()
        setattr(config, field, value)
        with pytest.raises(ConfigurationError, match=match):
            config.validate()


class TestDatalinkConfig:
    def test_empty_environment(self):
        config = DatalinkConfig.from_env({})
        assert config == DatalinkConfig()
        assert config.port == 47808
        assert config.bbmd_address is None
        assert config.debug is False

    def test_full_environment(self):
        config = DatalinkConfig.from_env(
            {
                "BACNET_IFACE": "192.168.1.10",
                "BACNET_IP_PORT": "0xBAC1",
                "BACNET_IP_BROADCAST": "192.168.1.255",
                "BACNET_BBMD_ADDRESS": "10.0.0.1",
                "BACNET_BBMD_PORT": "47809",
                "BACNET_BBMD_TIMETOLIVE": "120",
                "BACNET_APDU_TIMEOUT": "6000",
                "BACNET_APDU_RETRIES": "2",
                "BACNET_DEBUG": "",
            }
        )
        assert config.interface == "192.168.1.10"
        assert config.port == 47809
        assert config.broadcast_address == "192.168.1.255"
        assert config.bbmd_address == "10.0.0.1"
        assert config.bbmd_port == 47809
        assert config.bbmd_ttl == 120
        assert config.apdu_timeout_ms == 6000
        assert config.apdu_retries == 2
        assert config.debug is True

    def test_blank_values_use_defaults(self):
        config = DatalinkConfig.from_env({"BACNET_IP_PORT": " ", "BACNET_BBMD_ADDRESS": ""})
        assert config.port == 47808
        assert config.bbmd_address is None

    def test_non_integer(self):
        with pytest.raises(ConfigurationError, match="BACNET_IP_PORT"):
            DatalinkConfig.from_env({"BACNET_IP_PORT": "abc"})

    def test_port_out_of_range(self):
        with pytest.raises(ConfigurationError, match="port"):
            DatalinkConfig.from_env({"BACNET_IP_PORT": "70000"})

    def test_ttl_out_of_range(self):
        with pytest.raises(ConfigurationError, match="time-to-live"):
            DatalinkConfig.from_env({"BACNET_BBMD_TIMETOLIVE": "0"})

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BACNET_APDU_RETRIES", "5")
        assert DatalinkConfig.from_env().apdu_retries == 5
