from .base import MessageKind, Subscription, Transport
from .dummy import DummyTransport
from .intrinsics import IntrinsicsAcquirer
from .zmq import ZMQTransport
