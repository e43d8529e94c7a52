#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
The two UDP sockets used by the LAN transport:

  1. LanReceiverSocket -- bound to the receiver port (typically 4002) and joined to the
     multicast group, so that it sees every scan reply and status reply. Received
     datagrams are delivered synchronously to a LanDatagramHandler from the event loop.
  2. LanSenderSocket -- bound to an ephemeral port and used only for sending scan requests
     to the multicast group and commands to individual devices. Each send is awaited and
     reports its own outcome by raising OSError.
"""

from __future__ import annotations

import asyncio
from asyncio import Future
import socket
import sys

from .internal_types import *
from .pkg_logging import logger
from .exceptions import GoveeLanError
from .constants import LAN_MULTICAST_ADDRESS, RECEIVER_PORT
from .util import format_host_and_port

class LanDatagramHandler(Protocol):
    """The consumer of datagrams received on a LanReceiverSocket."""

    def datagram_received(self, addr: HostAndPort, data: bytes) -> None: ...

    def error_received(self, exc: Exception) -> None: ...

class DatagramSender(Protocol):
    """The interface used to send datagrams. Implementations raise OSError if the send fails."""

    async def sendto(self, data: bytes, addr: HostAndPort) -> None: ...

class _LanReceiverProtocol(asyncio.DatagramProtocol):
    """An adapter between the asyncio transport and LanReceiverSocket."""

    receiver: LanReceiverSocket

    def __init__(self, receiver: LanReceiverSocket):
        self.receiver = receiver

    def connection_made(self, transport: asyncio.BaseTransport):
        """Called when a connection is made."""
        # asyncio datagram transports do not inherit from asyncio.DatagramTransport, so this
        # is not asserted.
        self.receiver.transport = transport # type: ignore[assignment]
        self.receiver.connection_made()

    def datagram_received(self, data: bytes, addr: Tuple[str, int]):
        """Called when some datagram is received."""
        self.receiver.datagram_received(addr, data)

    def error_received(self, exc: Exception):
        """Called when a send or receive operation raises an OSError.

        (Other than BlockingIOError or InterruptedError.)
        """
        self.receiver.error_received(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        """Called when the connection is lost or closed."""
        self.receiver.connection_lost(exc)

class LanReceiverSocket(AsyncContextManager['LanReceiverSocket']):
    """
    The inbound socket. Binds to 0.0.0.0:<receiver_port> and joins the multicast group on each
    bind address (or on the default interface if no bind addresses are given).
    """

    handler: LanDatagramHandler
    multicast_address: str
    port: int
    bind_addresses: List[str]

    sock: Optional[socket.socket] = None
    transport: Optional[asyncio.DatagramTransport] = None

    final_result: Future[None]
    """A future that is set when the receiver is closed."""

    def __init__(
            self,
            handler: LanDatagramHandler,
            multicast_address: str=LAN_MULTICAST_ADDRESS,
            port: int=RECEIVER_PORT,
            bind_addresses: Optional[Iterable[str]]=None,
          ) -> None:
        self.handler = handler
        self.multicast_address = multicast_address
        self.port = port
        self.bind_addresses = [] if bind_addresses is None else list(bind_addresses)
        self.final_result = asyncio.get_running_loop().create_future()

    def create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if sys.platform not in ( 'win32', 'cygwin' ):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            # Multicast listeners MUST bind to 0.0.0.0:<port> to receive multicast packets
            sock.bind(('', self.port))
            group_bin = socket.inet_aton(self.multicast_address)
            interfaces = self.bind_addresses if len(self.bind_addresses) > 0 else [ '0.0.0.0' ]
            for interface_address in interfaces:
                mreq = group_bin + socket.inet_aton(interface_address)
                logger.debug(f"Joining multicast group {self.multicast_address} on {interface_address}; mreq={mreq!r}")
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
        except BaseException:
            sock.close()
            raise
        return sock

    async def start(self) -> None:
        if self.sock is not None:
            raise GoveeLanError("LanReceiverSocket is already started")
        loop = asyncio.get_running_loop()
        self.sock = self.create_socket()
        try:
            await loop.create_datagram_endpoint(
                lambda: _LanReceiverProtocol(self),
                sock=self.sock
              )
        except BaseException:
            self.sock.close()
            self.sock = None
            raise
        host, port = self.sock.getsockname()[:2]
        logger.info(f"LAN server started listening {host}:{port}")

    async def stop(self) -> None:
        """Closes the receiver. Pending and future datagrams are dropped."""
        if self.transport is not None:
            # final_result is set by connection_lost()
            self.transport.close()
        else:
            if self.sock is not None:
                self.sock.close()
                self.sock = None
            self.set_final_result()

    async def wait_for_done(self) -> None:
        await self.final_result

    def connection_made(self) -> None:
        logger.debug(f"Receiver connection made on port {self.port}")

    def datagram_received(self, addr: HostAndPort, data: bytes) -> None:
        logger.debug(f"Received datagram from {format_host_and_port(addr)}: {data!r}")
        self.handler.datagram_received(addr, data)

    def error_received(self, exc: Exception) -> None:
        # The receiver is not restarted; a persistent error silently ends discovery.
        logger.warning(f"LAN server error: {exc}")
        self.handler.error_received(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"Receiver connection lost, exc={exc}")
        self.transport = None
        self.sock = None
        if exc is None:
            self.set_final_result()
        else:
            self.set_final_exception(exc)

    def set_final_result(self) -> None:
        if not self.final_result.done():
            self.final_result.set_result(None)

    def set_final_exception(self, exc: BaseException) -> None:
        if not self.final_result.done():
            self.final_result.set_exception(exc)

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        await self.stop()
        return False

class LanSenderSocket(AsyncContextManager['LanSenderSocket']):
    """
    The outbound socket, bound to an ephemeral local port. Sends are awaited with
    loop.sock_sendto() so that each send reports the local stack's success or failure.
    """

    bind_address: str
    sock: Optional[socket.socket] = None

    def __init__(self, bind_address: str='') -> None:
        self.bind_address = bind_address

    async def start(self) -> None:
        if self.sock is not None:
            raise GoveeLanError("LanSenderSocket is already started")
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setblocking(False)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
            if self.bind_address != '':
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(self.bind_address))
            sock.bind((self.bind_address, 0))
        except BaseException:
            sock.close()
            raise
        self.sock = sock
        logger.debug(f"Sender bound to {format_host_and_port(sock.getsockname()[:2])}")

    async def stop(self) -> None:
        if self.sock is not None:
            try:
                self.sock.close()
            except OSError as e:
                logger.error(f"Error closing sender socket: {e}")
            self.sock = None

    async def sendto(self, data: bytes, addr: HostAndPort) -> None:
        sock = self.sock
        if sock is None:
            raise OSError("Sender socket is closed")
        logger.debug(f"Sending datagram to {format_host_and_port(addr)}: {data!r}")
        await asyncio.get_running_loop().sock_sendto(sock, data, addr)

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        await self.stop()
        return False
