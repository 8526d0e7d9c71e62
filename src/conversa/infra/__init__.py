"""Camada de infraestrutura — adapters para store e responder.

Exporta:
- Stores: InMemoryMessageStore, JsonlMessageStore, RedisMessageStore,
  FirestoreMessageStore, create_message_store
- Responders: EchoResponder, HttpResponder, create_responder
- HTTP: HttpClient, HttpClientConfig, HttpError

Infraestrutura não decide regra de negócio; domínio não conhece infraestrutura.
"""

from conversa.infra.http import HttpClient, HttpClientConfig, HttpError, create_http_client
from conversa.infra.message_store_factory import create_message_store
from conversa.infra.message_store_file import JsonlMessageStore
from conversa.infra.message_store_firestore import FirestoreMessageStore
from conversa.infra.message_store_memory import InMemoryMessageStore
from conversa.infra.message_store_redis import RedisMessageStore
from conversa.infra.responder_echo import EchoResponder
from conversa.infra.responder_factory import create_responder
from conversa.infra.responder_http import HttpResponder

__all__ = [
    "InMemoryMessageStore",
    "JsonlMessageStore",
    "RedisMessageStore",
    "FirestoreMessageStore",
    "create_message_store",
    "EchoResponder",
    "HttpResponder",
    "create_responder",
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "create_http_client",
]
