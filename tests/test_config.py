import pytest

from ceph_orchestrator.config import OperatorConfig


def test_defaults_apply_without_environment():
    config = OperatorConfig.from_env({})

    assert config.cleanup_poll_interval_seconds == 5.0
    assert config.zone_requeue_seconds == 10.0
    assert config.radosgw_admin_binary == "radosgw-admin"
    assert config.log_environment == "production"


def test_environment_overrides():
    config = OperatorConfig.from_env(
        {
            "ROOK_CEPH_IMAGE": "rook/ceph:v1.5.0",
            "CLEANUP_POLL_INTERVAL_SECONDS": "2.5",
            "ZONE_REQUEUE_SECONDS": "30",
            "LOG_ENVIRONMENT": "development",
        }
    )

    assert config.image == "rook/ceph:v1.5.0"
    assert config.cleanup_poll_interval_seconds == 2.5
    assert config.zone_requeue_seconds == 30.0
    assert config.log_environment == "development"


def test_invalid_number_is_rejected():
    with pytest.raises(ValueError, match="ZONE_REQUEUE_SECONDS"):
        OperatorConfig.from_env({"ZONE_REQUEUE_SECONDS": "soon"})
