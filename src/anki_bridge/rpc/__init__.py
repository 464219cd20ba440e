"""Generic typed RPC tunnel.

A ``ServiceContract`` lists actions; ``RpcClient`` turns calls into
``POST {base}/{action}`` requests with a JSON argument array and
``RpcServer`` dispatches such requests to a service object. Both sides speak
the ``{result, error}`` ``Envelope``.
"""
from .client import RpcClient, create_rpc_client
from .contract import Action, Param, ServiceContract
from .envelope import Envelope
from .errors import RpcContractError, RpcError
from .routing import build_rpc_router
from .server import RpcServer, create_rpc_server
