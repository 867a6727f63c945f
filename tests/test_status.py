"""
Tests for the read-only status use case.
"""

from jmlboot.core.models.toolchain import ToolchainConfig
from jmlboot.core.use_cases.bootstrap import bootstrap, restore
from jmlboot.core.use_cases.status import get_status


class TestGetStatus:
    def test_fresh_root(self, toolchain_config: ToolchainConfig):
        status = get_status(toolchain_config)
        assert not status.complete
        assert status.next_step == "fetch"
        assert not any(s.complete for s in status.steps)

    def test_after_bootstrap(self, toolchain_config: ToolchainConfig):
        bootstrap(toolchain_config)
        status = get_status(toolchain_config)
        assert status.complete
        assert status.next_step is None

    def test_after_restore(self, toolchain_config: ToolchainConfig):
        bootstrap(toolchain_config)
        restore(toolchain_config)
        status = get_status(toolchain_config)
        assert status.next_step == "substitute-compiler"

    def test_does_not_create_anything(self, toolchain_config: ToolchainConfig):
        get_status(toolchain_config)
        assert not toolchain_config.root.exists()

    def test_to_dict(self, toolchain_config: ToolchainConfig):
        d = get_status(toolchain_config).to_dict()
        assert d["version"] == "v1"
        assert d["complete"] is False
        assert [s["name"] for s in d["steps"]][0] == "fetch"
