"""
SSH and Telnet byte-stream transports.

Security note: the SSH transport accepts any host key and the Telnet
transport sends credentials in clear text. Devices are pre-enumerated and
reached over trusted management networks only; do not point these
transports at untrusted hosts.
"""
import logging
import os
import selectors
import shutil
import socket
import subprocess

import paramiko

from devman.cli.errors import CliAuthError, CliConnectionError, TransportClosedError

logger = logging.getLogger(__name__)

# Appended to the library defaults for old embedded SSH stacks
LEGACY_KEX = (
    "diffie-hellman-group1-sha1",
    "diffie-hellman-group-exchange-sha1",
    "diffie-hellman-group-exchange-sha256",
)
LEGACY_CIPHERS = ("aes256-cbc", "aes192-cbc", "aes128-cbc", "3des-cbc")

KEY_CLASSES = (paramiko.RSAKey, paramiko.Ed25519Key, paramiko.ECDSAKey)

READ_SIZE = 4096


def _extend_algorithms(options: paramiko.SecurityOptions, attr: str, extra: tuple[str, ...]) -> None:
    """Append algorithms the installed paramiko supports, skipping the rest."""
    for name in extra:
        current = tuple(getattr(options, attr))
        if name in current:
            continue
        try:
            setattr(options, attr, current + (name,))
        except ValueError:
            logger.debug(f"SSH {attr} algorithm {name} not supported by paramiko")


def load_private_key(path: str, passphrase: str | None = None) -> paramiko.PKey:
    """
    Load a private key trying each supported key type.

    Raises:
        OSError: key file unreadable
        paramiko.SSHException: key could not be parsed
    """
    last_error: paramiko.SSHException | None = None
    for key_class in KEY_CLASSES:
        try:
            return key_class.from_private_key_file(path, password=passphrase or None)
        except paramiko.SSHException as e:
            last_error = e
    raise paramiko.SSHException(f"unsupported or invalid private key {path}: {last_error}")


class SSHTransport:
    """Interactive shell channel over paramiko."""

    def __init__(self, client: paramiko.Transport, channel: paramiko.Channel):
        self.client = client
        self.channel = channel

    @classmethod
    def connect(
        cls,
        host: str,
        port: int,
        username: str,
        password: str = "",
        key_path: str = "",
        key_secret: str = "",
        timeout: float = 10,
    ) -> "SSHTransport":
        """
        Open an authenticated shell session.

        Host keys are not verified (see module docstring). An unreadable or
        unparsable private key is logged and password authentication used.
        """
        addr = f"{host}:{port}"
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            raise CliConnectionError(f"ssh connection to {addr} failed: {e}") from e

        client = paramiko.Transport(sock)
        try:
            options = client.get_security_options()
            _extend_algorithms(options, "kex", LEGACY_KEX)
            _extend_algorithms(options, "ciphers", LEGACY_CIPHERS)
            client.banner_timeout = timeout
            client.auth_timeout = timeout
            client.start_client(timeout=timeout)

            pkey = None
            if key_path:
                try:
                    pkey = load_private_key(key_path, key_secret)
                except (OSError, paramiko.SSHException) as e:
                    logger.warning(
                        f"Unable to load private key {key_path}: {e}; using password authentication"
                    )

            if pkey is not None:
                client.auth_publickey(username, pkey)
            else:
                client.auth_password(username, password)

            channel = client.open_session(timeout=timeout)
            channel.get_pty(width=200, height=1000)
            channel.invoke_shell()
        except paramiko.AuthenticationException as e:
            client.close()
            raise CliAuthError(f"ssh authentication to {addr} as {username} failed: {e}") from e
        except (paramiko.SSHException, OSError, EOFError) as e:
            client.close()
            raise CliConnectionError(f"ssh session to {addr} failed: {e}") from e

        return cls(client, channel)

    def send(self, data: bytes) -> None:
        try:
            self.channel.sendall(data)
        except (OSError, paramiko.SSHException) as e:
            raise TransportClosedError(f"ssh send failed: {e}") from e

    def recv(self, timeout: float) -> bytes:
        self.channel.settimeout(timeout)
        try:
            data = self.channel.recv(READ_SIZE)
        except socket.timeout:
            return b""
        except (OSError, paramiko.SSHException) as e:
            raise TransportClosedError(f"ssh receive failed: {e}") from e
        if not data:
            raise TransportClosedError("ssh channel closed by remote end")
        return data

    def close(self) -> None:
        self.channel.close()
        self.client.close()


class TelnetTransport:
    """
    Local ``telnet`` client process driven through a pseudo terminal.

    Telnet option negotiation is left to the client program.
    """

    def __init__(self, process: subprocess.Popen, fd: int):
        self.process = process
        self.fd = fd
        self._selector = selectors.DefaultSelector()
        self._selector.register(fd, selectors.EVENT_READ)

    @classmethod
    def spawn(cls, host: str, port: int, command: str = "telnet") -> "TelnetTransport":
        """Start ``telnet host port`` attached to a new pty."""
        binary = shutil.which(command)
        if binary is None:
            raise CliConnectionError(f"create telnet session to {host} {port} failed: {command} not found")

        master, slave = os.openpty()
        try:
            process = subprocess.Popen(
                [binary, host, str(port)],
                stdin=slave,
                stdout=slave,
                stderr=slave,
                close_fds=True,
                start_new_session=True,
            )
        except OSError as e:
            os.close(master)
            raise CliConnectionError(f"create telnet session to {host} {port} failed: {e}") from e
        finally:
            os.close(slave)

        return cls(process, master)

    def send(self, data: bytes) -> None:
        try:
            os.write(self.fd, data)
        except OSError as e:
            raise TransportClosedError(f"telnet send failed: {e}") from e

    def recv(self, timeout: float) -> bytes:
        if not self._selector.select(timeout):
            return b""
        try:
            data = os.read(self.fd, READ_SIZE)
        except OSError:
            # pty raises EIO once the child has exited
            data = b""
        if not data:
            raise TransportClosedError("telnet client exited")
        return data

    def close(self) -> None:
        self._selector.close()
        if self.process.poll() is None:
            self.process.terminate()
            try:
                self.process.wait(timeout=2)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()
        os.close(self.fd)
