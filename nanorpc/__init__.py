"""nanorpc - request/reply RPC, channels and reverse calls over Socket.IO."""

__version__ = "0.3.0"
__logo__ = "⚡"

from nanorpc.rpc.protocol import ErrorCode, RpcStatus
from nanorpc.rpc.lifecycle import Session
from nanorpc.rpc.client_proxy import ClientProxy
from nanorpc.utils.exceptions import NanoRPCError, DuplicateMethodError, CallTimeoutError
from nanorpc.server import NanoRPCServer, create_server
from nanorpc.client import NanoRPCClient

__all__ = [
    "__version__",
    "ErrorCode",
    "RpcStatus",
    "Session",
    "ClientProxy",
    "NanoRPCError",
    "DuplicateMethodError",
    "CallTimeoutError",
    "NanoRPCServer",
    "create_server",
    "NanoRPCClient",
]
