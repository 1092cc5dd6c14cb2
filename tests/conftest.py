"""
Shared pytest fixtures for kubeapply tests.

This module provides common fixtures including:
- KubectlMocker: Mock kubectl subprocess calls with canned responses
- Manifest and Kustomization writers for temporary files
- Configuration isolation from KUBEAPPLY_* environment variables
"""

import os
import subprocess
import sys
import threading
import time
import uuid
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple, Union
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kubeapply.config.provider import set_config_provider
from kubeapply.modules.kubectl import engine

# subprocess.run is patched while a mocker is active; passthrough needs the real one.
_real_subprocess_run = subprocess.run


# =============================================================================
# Kubectl Mocking Infrastructure
# =============================================================================

@dataclass
class KubectlResponse:
    """Represents a mocked kubectl command response."""
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    delay: float = 0.0
    block: Optional[threading.Event] = None

    def to_completed_process(self) -> MagicMock:
        """Convert to a subprocess.CompletedProcess-like mock."""
        result = MagicMock()
        result.stdout = self.stdout
        result.stderr = self.stderr
        result.returncode = self.returncode
        return result


@dataclass
class KubectlCall:
    """Record of a kubectl call made during testing."""
    command: List[str]
    full_command_str: str
    matched_pattern: Optional[str] = None
    response: Optional[KubectlResponse] = None


class KubectlMocker:
    """
    Mock kubectl subprocess calls with pattern-matched responses.

    This allows testing apply/delete behavior without a real Kubernetes
    cluster by intercepting subprocess.run calls. Calls arrive on the
    background threads the bridge starts, so bookkeeping is locked.

    Usage:
        def test_apply(kubectl_mocker):
            kubectl_mocker.register("apply", KubectlResponse(
                stdout="namespace/demo created"
            ))

            apply_manifests(kubeconfig, ApplyManifestsOptions(), [path])

            assert kubectl_mocker.was_called_with("--filename=")
    """

    def __init__(self):
        self._responses: List[Tuple[Union[str, Pattern], KubectlResponse, int]] = []
        self._call_history: List[KubectlCall] = []
        self._default_response = KubectlResponse(
            stderr="error: mock not configured for this command",
            returncode=1
        )
        self._passthrough_non_kubectl = True
        self._lock = threading.Lock()
        self._in_flight = 0
        self.max_in_flight = 0

    def register(
        self,
        pattern: Union[str, Pattern],
        response: KubectlResponse,
        priority: int = 0
    ) -> "KubectlMocker":
        """
        Register a response for commands matching the pattern.

        Args:
            pattern: String (substring match) or regex pattern
            response: KubectlResponse to return when matched
            priority: Higher priority patterns are checked first

        Returns:
            self for chaining
        """
        self._responses.append((pattern, response, priority))
        # Sort by priority (highest first)
        self._responses.sort(key=lambda x: x[2], reverse=True)
        return self

    def register_scenario(self, scenario_name: str) -> "KubectlMocker":
        """
        Register all responses for a named scenario.

        Args:
            scenario_name: One of the predefined scenario names

        Returns:
            self for chaining
        """
        from fixtures.kubectl_scenarios import SCENARIOS

        if scenario_name not in SCENARIOS:
            raise ValueError(
                f"Unknown scenario: {scenario_name}. "
                f"Available: {list(SCENARIOS.keys())}"
            )

        for pattern, response in SCENARIOS[scenario_name].items():
            self.register(pattern, response)

        return self

    def set_default_response(self, response: KubectlResponse) -> "KubectlMocker":
        """Set the default response for unmatched commands."""
        self._default_response = response
        return self

    def mock_run(self, cmd: List[str], **kwargs) -> MagicMock:
        """
        Mock implementation of subprocess.run for kubectl commands.

        This method is used as a side_effect for patching subprocess.run.
        """
        cmd_str = " ".join(cmd)

        # Only intercept kubectl commands
        if os.path.basename(cmd[0]) != "kubectl":
            if self._passthrough_non_kubectl:
                return _real_subprocess_run(cmd, **kwargs)
            raise RuntimeError(f"Non-kubectl command blocked: {cmd_str}")

        # Find matching response
        kubectl_args = " ".join(cmd[1:])
        matched_pattern = None
        response = self._default_response

        for pattern, resp, _ in self._responses:
            if isinstance(pattern, str):
                if pattern in kubectl_args:
                    matched_pattern = pattern
                    response = resp
                    break
            else:  # Compiled regex
                if pattern.search(kubectl_args):
                    matched_pattern = pattern.pattern
                    response = resp
                    break

        call = KubectlCall(
            command=list(cmd),
            full_command_str=cmd_str,
            matched_pattern=matched_pattern,
            response=response
        )

        with self._lock:
            self._call_history.append(call)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)

        try:
            if response.delay:
                time.sleep(response.delay)
            if response.block is not None:
                response.block.wait(timeout=30)
        finally:
            with self._lock:
                self._in_flight -= 1

        return response.to_completed_process()

    @property
    def calls(self) -> List[KubectlCall]:
        """Get all kubectl calls made during the test."""
        with self._lock:
            return list(self._call_history)

    @property
    def call_count(self) -> int:
        """Get the number of kubectl calls made."""
        return len(self.calls)

    @property
    def last_call(self) -> KubectlCall:
        return self.calls[-1]

    def was_called_with(self, pattern: str) -> bool:
        """Check if any call contained the given pattern."""
        return any(pattern in call.full_command_str for call in self.calls)

    def get_calls_matching(self, pattern: str) -> List[KubectlCall]:
        """Get all calls containing the given pattern."""
        return [c for c in self.calls if pattern in c.full_command_str]

    def reset(self):
        """Clear call history (but keep registered responses)."""
        with self._lock:
            self._call_history = []

    def clear(self):
        """Clear both responses and call history."""
        self._responses = []
        self.reset()


@pytest.fixture
def kubectl_mocker():
    """
    Fixture that provides a KubectlMocker with subprocess.run patched.

    Usage:
        def test_something(kubectl_mocker):
            kubectl_mocker.register("apply", KubectlResponse(stdout="..."))
            # Your test code that calls kubectl
            assert kubectl_mocker.was_called_with("apply")
    """
    mocker = KubectlMocker()
    with patch("subprocess.run", side_effect=mocker.mock_run):
        yield mocker


@pytest.fixture
def kubectl_mocker_strict():
    """
    Strict kubectl mocker that fails on any unregistered command.

    Use this when you want to ensure all kubectl interactions are
    explicitly accounted for in your test.
    """
    mocker = KubectlMocker()
    mocker._default_response = KubectlResponse(
        stderr="STRICT MODE: No mock registered for this command",
        returncode=127
    )
    mocker._passthrough_non_kubectl = False
    with patch("subprocess.run", side_effect=mocker.mock_run):
        yield mocker


# =============================================================================
# Environment Isolation
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Drop KUBEAPPLY_* variables and reset the provider around every test."""
    for name in list(os.environ):
        if name.startswith("KUBEAPPLY_"):
            monkeypatch.delenv(name, raising=False)
    set_config_provider(None)
    yield
    set_config_provider(None)
    engine.default_behavior_on_fatal()


# =============================================================================
# Manifest Writers
# =============================================================================

NAMESPACE_MANIFEST = """\
apiVersion: v1
kind: Namespace
metadata:
  name: {name}
"""

DEPLOYMENT_MANIFEST = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: {name}
  labels:
    app: {name}
spec:
  replicas: 1
  selector:
    matchLabels:
      app: {name}
  template:
    metadata:
      labels:
        app: {name}
    spec:
      containers:
      - name: nginx
        image: nginx:1.14.2
        ports:
        - containerPort: 80
"""

KUSTOMIZATION_MANIFEST = """\
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
configMapGenerator:
- name: {name}
  literals:
  - foo=bar
"""


@pytest.fixture
def kubeconfig_path(tmp_path) -> str:
    """A placeholder kubeconfig file; only its path reaches kubectl mocks."""
    path = tmp_path / "test.kubeconfig"
    path.write_text("apiVersion: v1\nkind: Config\n")
    return str(path)


@pytest.fixture
def namespace_manifest(tmp_path):
    """Factory writing a Namespace manifest; returns (path, namespace name)."""

    def _write() -> Tuple[str, str]:
        name = f"test-ns-{uuid.uuid4()}"
        path = tmp_path / f"create-ns-{name}.yaml"
        path.write_text(NAMESPACE_MANIFEST.format(name=name))
        return str(path), name

    return _write


@pytest.fixture
def deployment_manifest(tmp_path):
    """Factory writing a Deployment manifest; returns (path, deployment name)."""

    def _write() -> Tuple[str, str]:
        name = str(uuid.uuid4())
        path = tmp_path / f"create-depl-{name}.yaml"
        path.write_text(DEPLOYMENT_MANIFEST.format(name=name))
        return str(path), name

    return _write


@pytest.fixture
def kustomization_dir(tmp_path):
    """Factory writing a Kustomization directory; returns (dir, configmap prefix)."""

    def _write() -> Tuple[str, str]:
        name = f"test-cm-{uuid.uuid4()}"
        directory = tmp_path / f"kustomization-{name}"
        directory.mkdir()
        (directory / "kustomization.yaml").write_text(KUSTOMIZATION_MANIFEST.format(name=name))
        return str(directory), name

    return _write


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "kubectl_mock: Tests using mocked kubectl subprocess calls"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests requiring a real cluster"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
