from .bases import CanonicalModel, ContractAddress, ItemStatus, MetadataUrl, ItemState, FinalizationStatus, U64_MAX
from .events import Role, RawContractEvent, CreatedEvent, StatusChangedEvent, RoleGrantedEvent, RoleRevokedEvent, NonceEvent, ContractEventTypes, ItemEventTypes
from .params import ChangeItemStatusParams, CreateItemParams, StateMachineUpdate, UpdateStateMachineParams, RoleParams
from .results import TransactionSummary, FinalizationResult, WriteOutcome
from .views import GeoPoint, ItemTimeline, ItemReport
from .https import SubmitTransactionRequest, RelayErrorBody
from .versions import PermitSchemaVersion

__all__ = [
    "CanonicalModel",
    "ContractAddress",
    "ItemStatus",
    "MetadataUrl",
    "ItemState",
    "FinalizationStatus",
    "U64_MAX",
    "Role",
    "RawContractEvent",
    "CreatedEvent",
    "StatusChangedEvent",
    "RoleGrantedEvent",
    "RoleRevokedEvent",
    "NonceEvent",
    "ContractEventTypes",
    "ItemEventTypes",
    "ChangeItemStatusParams",
    "CreateItemParams",
    "StateMachineUpdate",
    "UpdateStateMachineParams",
    "RoleParams",
    "TransactionSummary",
    "FinalizationResult",
    "WriteOutcome",
    "GeoPoint",
    "ItemTimeline",
    "ItemReport",
    "SubmitTransactionRequest",
    "RelayErrorBody",
    "PermitSchemaVersion",
]
