"""
Profile reconciliation service.

Keeps the flat ``user_profiles`` columns and the nested, namespaced
questionnaire document consistent across create/update/read:

- writes are partitioned by the questionnaire field-set registry and merged
  key by key, never replacing a whole row or a whole namespace;
- a create for a subject that already has a profile becomes an update;
- reads overlay the default namespace onto a copy of the row for legacy
  consumers that expect flat questionnaire fields.
"""

import copy
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from pydantic import ValidationError

from talent_backend.domain.questionnaire import (
    ACTING_FIELDS,
    FieldSetRegistry,
    PartitionedPayload,
    QuestionnaireFieldSet,
    merge_documents,
)
from talent_backend.infrastructure.config.settings import settings
from talent_backend.infrastructure.persistence.profile_repository import (
    ProfileRepository,
)
from talent_backend.models import (
    MANAGED_COLUMNS,
    PROFILE_COLUMNS,
    REQUIRED_COLUMNS,
    UserProfile,
)
from talent_backend.schemas import (
    questionnaire_document_adapter,
    questionnaire_value_adapter,
)
from talent_backend.services.exceptions import (
    MalformedPayloadError,
    ProfileNotFoundError,
    ProfileServiceError,
)
from talent_backend.utils.structured_logger import EventSink, log_event

logger = logging.getLogger(__name__)

NESTED_DOCUMENT_KEY = "questionnaire_responses"

# camelCase keys sent by legacy clients
FLAT_FIELD_ALIASES = {
    "talentType": "talent_type",
    "displayName": "display_name",
    "phoneNumber": "phone_number",
    "availabilityStatus": "availability_status",
    "questionnaireResponses": NESTED_DOCUMENT_KEY,
}


def build_field_registry(
    extra_field_sets: Iterable[QuestionnaireFieldSet] = (),
) -> FieldSetRegistry:
    """Registry with the built-in acting field set plus any extra namespaces."""
    registry = FieldSetRegistry(
        reserved_names=frozenset(PROFILE_COLUMNS)
        | MANAGED_COLUMNS
        | frozenset(FLAT_FIELD_ALIASES)
        | {NESTED_DOCUMENT_KEY}
    )
    registry.register(ACTING_FIELDS)
    for field_set in extra_field_sets:
        registry.register(field_set)
    return registry


class ProfileReconciler:
    """Read/write operations over profiles and their questionnaire documents."""

    def __init__(
        self,
        repository: ProfileRepository,
        field_sets: Optional[FieldSetRegistry] = None,
        default_namespace: Optional[str] = None,
        fallback_namespace: Optional[str] = None,
        default_role: Optional[str] = None,
        default_talent_type: Optional[str] = None,
        event_sink: Optional[EventSink] = None,
    ):
        self.repository = repository
        self.field_sets = field_sets or build_field_registry()
        self.default_namespace = default_namespace or settings.profile_default_namespace
        self.fallback_namespace = (
            fallback_namespace or settings.profile_fallback_namespace
        )
        self.default_role = default_role or settings.profile_default_role
        self.default_talent_type = (
            default_talent_type or settings.profile_default_talent_type
        )
        self.event_sink = event_sink or log_event

    # Observability

    def _emit(self, operation: str, subject_id: str, outcome: str, **fields: Any) -> None:
        self.event_sink(
            f"profile.{operation}", subject_id=subject_id, outcome=outcome, **fields
        )

    @contextmanager
    def _observe(self, operation: str, subject_id: str):
        try:
            yield
        except ProfileServiceError as e:
            self._emit(
                operation,
                subject_id,
                "not_found" if isinstance(e, ProfileNotFoundError) else "failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

    # Payload handling

    def validate_document(self, document: Any) -> Dict[str, Dict[str, Any]]:
        """Check that a questionnaire document is a mapping of mappings of answers."""
        try:
            return questionnaire_document_adapter.validate_python(document)
        except ValidationError as e:
            raise MalformedPayloadError(
                f"Questionnaire document must map namespaces to field maps: {e}"
            ) from e

    def validate_answer(self, key: str, value: Any) -> Any:
        """Check a single questionnaire answer sent as a top-level payload key."""
        try:
            return questionnaire_value_adapter.validate_python(value)
        except ValidationError as e:
            raise MalformedPayloadError(
                f"Questionnaire field '{key}' must be text, a list or a scalar: {e}"
            ) from e

    def partition(
        self, payload: Mapping[str, Any], skip_required_nulls: bool = False
    ) -> PartitionedPayload:
        """
        Split a write payload into flat columns, questionnaire fields per
        namespace, and an optional nested questionnaire document.

        Keys owned by no registered namespace are kept under the fallback
        namespace instead of being dropped. A null for a required column is
        rejected, or skipped when ``skip_required_nulls`` is set.
        """
        if not isinstance(payload, Mapping):
            raise MalformedPayloadError("Profile payload must be a mapping")

        parts = PartitionedPayload()
        unknown = []
        for key, value in payload.items():
            column = FLAT_FIELD_ALIASES.get(key, key)
            if column == NESTED_DOCUMENT_KEY:
                if value is not None:
                    parts.nested = merge_documents(
                        parts.nested, self.validate_document(value)
                    )
            elif column in MANAGED_COLUMNS:
                logger.debug(f"Ignoring managed column '{column}' in profile payload")
            elif column in PROFILE_COLUMNS:
                if value is None and column in REQUIRED_COLUMNS:
                    if skip_required_nulls:
                        continue
                    raise MalformedPayloadError(f"Profile field '{column}' cannot be null")
                parts.flat[column] = value
            else:
                namespace = self.field_sets.namespace_for(key)
                if namespace is None:
                    namespace = self.fallback_namespace
                    unknown.append(key)
                parts.questionnaire.setdefault(namespace, {})[key] = self.validate_answer(
                    key, value
                )

        if unknown:
            logger.warning(
                f"Routing unrecognised fields {sorted(unknown)} to namespace "
                f"'{self.fallback_namespace}'"
            )
        return parts

    def _initial_document(self, parts: PartitionedPayload) -> Dict[str, Dict[str, Any]]:
        namespaces = [self.default_namespace]
        namespaces += [ns for ns in parts.questionnaire if ns != self.default_namespace]

        document = {}
        for namespace in namespaces:
            fields = self.field_sets.defaults_for(namespace)
            supplied = parts.questionnaire.get(namespace, {})
            fields.update({k: v for k, v in supplied.items() if v is not None})
            document[namespace] = fields
        return merge_documents(document, parts.nested)

    # Record shapes

    def _to_record(self, profile: UserProfile) -> Dict[str, Any]:
        record = self.repository.to_dict(profile)
        document = record.get(NESTED_DOCUMENT_KEY)
        record[NESTED_DOCUMENT_KEY] = (
            copy.deepcopy(document) if isinstance(document, dict) else {}
        )
        return record

    def _read_model(self, profile: UserProfile) -> Dict[str, Any]:
        record = self._to_record(profile)
        overlay = record[NESTED_DOCUMENT_KEY].get(self.default_namespace)
        if isinstance(overlay, dict):
            for key, value in overlay.items():
                # flat columns win over stray keys stored in the namespace
                if key not in record:
                    record[key] = copy.deepcopy(value)
        return record

    # Operations

    def get_profile(self, subject_id: str) -> Optional[Dict[str, Any]]:
        """
        Return the read-model for a subject, or None for a subject that has
        not been onboarded yet.
        """
        with self._observe("get", subject_id):
            profile = self.repository.get_by_subject(subject_id)
            if profile is None:
                self._emit("get", subject_id, "not_found")
                return None

            self._emit("get", subject_id, "found")
            return self._read_model(profile)

    def create_profile(self, subject_id: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create the subject's profile, or merge into it if one already exists.
        """
        with self._observe("create", subject_id):
            parts = self.partition(payload, skip_required_nulls=True)

            profile = self.repository.get_by_subject(subject_id)
            if profile is not None:
                self._emit("create", subject_id, "redirected")
                return self._apply_update(subject_id, profile, parts, via="create")

            values = dict(parts.flat)
            if not values.get("role"):
                values["role"] = self.default_role
            values[NESTED_DOCUMENT_KEY] = self._initial_document(parts)

            profile = self.repository.insert(subject_id, values)
            self._emit(
                "create",
                subject_id,
                "created",
                namespaces=sorted(values[NESTED_DOCUMENT_KEY]),
            )
            return self._to_record(profile)

    def update_profile(
        self, subject_id: str, partial_payload: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """
        Merge a partial payload into an existing profile.

        Raises:
            ProfileNotFoundError: the subject has no profile
            MalformedPayloadError: a required column is set to null, or a
                questionnaire answer has an unsupported shape
        """
        with self._observe("update", subject_id):
            profile = self.repository.get_by_subject(subject_id)
            if profile is None:
                raise ProfileNotFoundError(subject_id)

            parts = self.partition(partial_payload)
            return self._apply_update(subject_id, profile, parts)

    def _apply_update(
        self,
        subject_id: str,
        profile: UserProfile,
        parts: PartitionedPayload,
        **fields: Any,
    ) -> Dict[str, Any]:
        # Callers own failure reporting; only the outcome is emitted here
        values: Dict[str, Any] = dict(parts.flat)

        if parts.has_questionnaire_data:
            stored = profile.questionnaire_responses
            merged = merge_documents(
                stored if isinstance(stored, dict) else {}, parts.questionnaire
            )
            values[NESTED_DOCUMENT_KEY] = merge_documents(merged, parts.nested)

        if not values:
            self._emit("update", subject_id, "unchanged", **fields)
            return self._to_record(profile)

        profile = self.repository.update(profile, values)
        self._emit(
            "update",
            subject_id,
            "updated",
            flat_fields=sorted(parts.flat),
            namespaces=sorted(set(parts.questionnaire) | set(parts.nested)),
            **fields,
        )
        return self._to_record(profile)

    def _insert_minimal(self, subject_id: str, document: Dict[str, Any]) -> UserProfile:
        return self.repository.insert(
            subject_id,
            {
                "role": self.default_role,
                "talent_type": self.default_talent_type,
                "display_name": "",
                "bio": "",
                "location": "",
                NESTED_DOCUMENT_KEY: document,
            },
        )

    def ensure_profile(
        self,
        subject_id: str,
        responses: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Return the subject's profile, creating a minimal one if none exists.

        A created profile gets baseline flat fields and ``responses`` as its
        questionnaire document, stored as given.

        Returns:
            (record, created)
        """
        with self._observe("ensure", subject_id):
            document = self.validate_document(responses or {})

            profile = self.repository.get_by_subject(subject_id)
            if profile is not None:
                return self._to_record(profile), False

            profile = self._insert_minimal(subject_id, document)
            self._emit("ensure", subject_id, "created")
            return self._to_record(profile), True

    def save_questionnaire_responses(
        self, subject_id: str, responses: Mapping[str, Mapping[str, Any]]
    ) -> None:
        """
        Store questionnaire responses, creating the profile on first save.
        """
        with self._observe("save_questionnaire", subject_id):
            document = self.validate_document(responses)

            profile = self.repository.get_by_subject(subject_id)
            created = profile is None
            if created:
                self._insert_minimal(subject_id, document)
            else:
                self._apply_update(
                    subject_id,
                    profile,
                    PartitionedPayload(nested=document),
                    via="save_questionnaire",
                )

            self._emit(
                "save_questionnaire",
                subject_id,
                "created" if created else "merged",
                namespaces=sorted(document),
            )

    def get_questionnaire_responses(self, subject_id: str) -> Dict[str, Dict[str, Any]]:
        """
        Return the stored questionnaire document; {} when nothing is recorded.
        """
        with self._observe("get_questionnaire", subject_id):
            profile = self.repository.get_by_subject(subject_id)
            if profile is None or not profile.questionnaire_responses:
                self._emit("get_questionnaire", subject_id, "empty")
                return {}

            document = profile.questionnaire_responses
            if not isinstance(document, dict):
                logger.warning(
                    f"Ignoring non-mapping questionnaire document for subject {subject_id}"
                )
                self._emit("get_questionnaire", subject_id, "empty")
                return {}

            self._emit("get_questionnaire", subject_id, "found")
            return copy.deepcopy(document)
