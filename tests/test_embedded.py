"""
End-to-end test of embedded play mode over stdin/stdout.
"""

import json
import os
import subprocess
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
RUN_SECONDS = 10


@pytest.mark.skipif(sys.platform == "win32", reason="JSON lines channel needs POSIX pipes")
class TestEmbeddedPlay:
    """The host reads stdout as a pure JSON-lines stream."""

    def test_stdout_carries_only_protocol_lines(self, tmp_path):
        env = dict(os.environ)
        env.update(
            HEADLESS="1",
            SDL_AUDIODRIVER="dummy",
            PYTHONPATH=os.pathsep.join(
                [os.path.join(PROJECT_ROOT, "src"), PROJECT_ROOT, env.get("PYTHONPATH", "")]
            ),
        )
        init = json.dumps({"type": "init", "username": "Ada", "seed": 5, "allowAbort": True})

        proc = subprocess.Popen(
            [
                sys.executable,
                os.path.join(PROJECT_ROOT, "main.py"),
                "host.embedded=true",
                "audio.enabled=false",
                f"hydra.run.dir={tmp_path}",
            ],
            cwd=tmp_path,
            env=env,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        try:
            out, err = proc.communicate(input=init + "\n", timeout=RUN_SECONDS)
        except subprocess.TimeoutExpired:
            proc.kill()
            out, err = proc.communicate()
        else:
            pytest.fail(f"Play mode exited early:\n{err}")

        lines = [line for line in out.splitlines() if line.strip()]
        messages = [json.loads(line) for line in lines]

        assert messages and messages[0]["type"] == "ready"
        assert "Init applied" in err
