from ceph_orchestrator.observability.logging import configure_structlog, get_component_logger

__all__ = ["configure_structlog", "get_component_logger"]
