"""WireGuard keypair generation through `wg genkey` / `wg pubkey`."""

import subprocess
import threading
from dataclasses import dataclass
from typing import IO, List, Optional

from .command_factory import TunnelCommandFactory
from .exceptions import KeyGenError
from ..logging_utility import logger

KEYGEN_TIMEOUT = 5.0


@dataclass(frozen=True)
class Keypair:
    private_key: str
    public_key: str

    def __repr__(self) -> str:
        return f"Keypair(public_key={self.public_key!r})"


def _decode_key(output: bytes, cmd: List[str]) -> str:
    try:
        return output.decode("utf-8").strip()
    except UnicodeDecodeError:
        raise KeyGenError(f"Could not convert output of `{' '.join(cmd)}` to utf-8 string.")


class _StdinWriter(threading.Thread):
    """Writes the private key and closes stdin while the caller drains stdout."""

    def __init__(self, stream: IO[bytes], data: bytes):
        super().__init__(name="wg-pubkey-stdin", daemon=True)
        self.stream = stream
        self.data = data
        self.error: Optional[OSError] = None

    def run(self) -> None:
        try:
            self.stream.write(self.data)
            self.stream.flush()
        except OSError as e:
            self.error = e
        finally:
            try:
                self.stream.close()
            except OSError as e:
                self.error = self.error or e


class KeyGenerator:
    def __init__(self, commands: TunnelCommandFactory, timeout: float = KEYGEN_TIMEOUT):
        self.commands = commands
        self.timeout = timeout

    def generate_private_key(self) -> str:
        cmd = self.commands.genkey()
        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise KeyGenError(f"Failed to run {' '.join(cmd)}: {e}") from e

        if result.returncode != 0:
            raise KeyGenError(f"{' '.join(cmd)} exited with code {result.returncode}")
        key = _decode_key(result.stdout, cmd)
        if not key:
            raise KeyGenError("Failed to generate private key")
        return key

    def generate_public_key(self, private_key: str) -> str:
        cmd = self.commands.pubkey()
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise KeyGenError(f"Failed to run {' '.join(cmd)}: {e}") from e

        writer = _StdinWriter(process.stdin, f"{private_key.strip()}\n".encode("utf-8"))
        watchdog = threading.Timer(self.timeout, process.kill)
        watchdog.daemon = True
        writer.start()
        watchdog.start()
        try:
            output = process.stdout.read()
            returncode = process.wait()
        finally:
            watchdog.cancel()
            process.stdout.close()
            writer.join()

        if returncode != 0:
            raise KeyGenError(f"{' '.join(cmd)} exited with code {returncode}")
        if writer.error is not None:
            raise KeyGenError(f"Failed to write private key to {' '.join(cmd)}: {writer.error}")
        if not output:
            raise KeyGenError("Failed to generate public key")

        key = _decode_key(output, cmd)
        if not key:
            raise KeyGenError("Failed to generate public key")
        return key

    def generate_keypair(self) -> Keypair:
        private_key = self.generate_private_key()
        public_key = self.generate_public_key(private_key)
        logger.info(f"Generated keypair with public key {public_key}")
        return Keypair(private_key=private_key, public_key=public_key)
