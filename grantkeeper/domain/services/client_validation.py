# grantkeeper/domain/services/client_validation.py

"""
Validation of client registration data.

Complements the pydantic DTOs with the OAuth/OIDC rules that need the whole
client at once (for instance "a code flow client needs a redirect URI").
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from grantkeeper.domain.exceptions import InvalidClientSpecError
from grantkeeper.domain.models.client_domain_model import (
    ApplicationType,
    GrantType,
    ResponseType,
    Scope,
    SIGNING_ALGORITHMS,
    SubjectType,
    TokenEndpointAuthMethod,
)


class ClientSpecValidator:
    """
    Validates client specifications before they reach the registry.

    Each ``validate_*`` method returns a ``(valid, error_message)`` tuple;
    :meth:`ensure_valid` aggregates them and raises ``InvalidClientSpecError``.
    """

    MAX_URI_LENGTH = 2048
    MAX_NAME_LENGTH = 255
    WEB_SCHEMES = {"http", "https"}

    SUPPORTED_GRANT_TYPES = {g.value for g in GrantType}
    SUPPORTED_RESPONSE_TYPES = {r.value for r in ResponseType}
    SUPPORTED_SCOPES = {s.value for s in Scope}
    SUPPORTED_AUTH_METHODS = {m.value for m in TokenEndpointAuthMethod}

    @classmethod
    def validate_redirect_uri(cls, uri: Any, application_type: str = ApplicationType.WEB.value) -> Tuple[bool, Optional[str]]:
        """
        Check that a redirect URI is a well-formed absolute URI.

        Web clients need an http(s) URI with a host. Native clients may also
        use a private-use scheme such as ``com.example.app:/cb``.
        """
        if not isinstance(uri, str) or not uri:
            return False, "redirect URI must be a non-empty string"

        if len(uri) > cls.MAX_URI_LENGTH:
            return False, f"redirect URI is too long (max {cls.MAX_URI_LENGTH} characters)"

        if uri != uri.strip() or any(c.isspace() for c in uri):
            return False, f"redirect URI contains whitespace: {uri!r}"

        try:
            parts = urlsplit(uri)
        except ValueError as e:
            return False, f"malformed redirect URI {uri!r}: {e}"

        if not parts.scheme:
            return False, f"redirect URI must be absolute: {uri!r}"

        if parts.fragment:
            return False, f"redirect URI must not contain a fragment: {uri!r}"

        if parts.scheme in cls.WEB_SCHEMES:
            if not parts.netloc or not parts.hostname:
                return False, f"redirect URI has no host: {uri!r}"
            return True, None

        if application_type == ApplicationType.NATIVE.value:
            if "." not in parts.scheme and not parts.netloc:
                return False, f"private-use scheme should be a reverse domain name: {uri!r}"
            return True, None

        return False, f"unsupported redirect URI scheme '{parts.scheme}' for a web client"

    @classmethod
    def validate_members(cls, values: Any, supported: Iterable[str], label: str) -> Tuple[bool, Optional[str]]:
        """Check that ``values`` is a list drawn from ``supported``."""
        if not isinstance(values, (list, tuple)):
            return False, f"{label} must be a list"

        unknown = sorted({str(v) for v in values} - set(supported))
        if unknown:
            return False, f"unsupported {label}: {', '.join(unknown)}"

        return True, None

    @classmethod
    def validate(cls, spec: Mapping[str, Any]) -> Dict[str, str]:
        """
        Validate a full client specification.

        Args:
            spec: Mapping with the client fields (registration or merged update)

        Returns:
            Dictionary of field name to error message; empty when valid
        """
        errors: Dict[str, str] = {}
        application_type = spec.get("application_type") or ApplicationType.WEB.value

        if application_type not in {a.value for a in ApplicationType}:
            errors["application_type"] = f"unsupported application type '{application_type}'"

        redirect_uris: List[Any] = spec.get("redirect_uris") or []
        if not isinstance(redirect_uris, (list, tuple)):
            errors["redirect_uris"] = "redirect_uris must be a list"
            redirect_uris = []
        for uri in redirect_uris:
            valid, message = cls.validate_redirect_uri(uri, application_type)
            if not valid:
                errors["redirect_uris"] = message
                break

        for uri in spec.get("post_logout_redirect_uris") or []:
            valid, message = cls.validate_redirect_uri(uri, application_type)
            if not valid:
                errors["post_logout_redirect_uris"] = message
                break

        checks = (
            ("grant_types", cls.SUPPORTED_GRANT_TYPES),
            ("response_types", cls.SUPPORTED_RESPONSE_TYPES),
            ("scopes", cls.SUPPORTED_SCOPES),
        )
        for field_name, supported in checks:
            if field_name in spec and spec[field_name] is not None:
                valid, message = cls.validate_members(spec[field_name], supported, field_name)
                if not valid:
                    errors[field_name] = message

        grant_types = spec.get("grant_types") or []
        response_types = spec.get("response_types") or []
        if not isinstance(grant_types, (list, tuple)):
            grant_types = []
        if not isinstance(response_types, (list, tuple)):
            response_types = []
        needs_redirect = (
            GrantType.AUTHORIZATION_CODE.value in grant_types
            or GrantType.IMPLICIT.value in grant_types
            or any(rt != ResponseType.NONE.value for rt in response_types)
        )
        if needs_redirect and not redirect_uris and "redirect_uris" not in errors:
            errors["redirect_uris"] = "at least one redirect URI is required for browser-based flows"

        if "code" in " ".join(str(rt) for rt in response_types).split() and GrantType.AUTHORIZATION_CODE.value not in grant_types:
            errors.setdefault("grant_types", "response type 'code' requires the authorization_code grant")

        auth_method = spec.get("token_endpoint_auth_method")
        if auth_method is not None and auth_method not in cls.SUPPORTED_AUTH_METHODS:
            errors["token_endpoint_auth_method"] = f"unsupported token endpoint auth method '{auth_method}'"

        subject_type = spec.get("subject_type")
        if subject_type is not None and subject_type not in {s.value for s in SubjectType}:
            errors["subject_type"] = f"unsupported subject type '{subject_type}'"

        for alg_field in ("id_token_signed_response_alg", "userinfo_signed_response_alg"):
            alg = spec.get(alg_field)
            if alg is not None and alg not in SIGNING_ALGORITHMS:
                errors[alg_field] = f"unsupported signing algorithm '{alg}'"

        client_name = spec.get("client_name")
        if client_name is not None and len(client_name) > cls.MAX_NAME_LENGTH:
            errors["client_name"] = f"client name is too long (max {cls.MAX_NAME_LENGTH} characters)"

        for uri_field in ("client_uri", "logo_uri"):
            uri = spec.get(uri_field)
            if uri is None:
                continue
            try:
                parts = urlsplit(uri)
            except ValueError as e:
                errors[uri_field] = f"malformed {uri_field} {uri!r}: {e}"
                continue
            if parts.scheme not in cls.WEB_SCHEMES or not parts.netloc:
                errors[uri_field] = f"{uri_field} must be an absolute http(s) URI"

        return errors

    @classmethod
    def ensure_valid(cls, spec: Mapping[str, Any]) -> None:
        """Raise ``InvalidClientSpecError`` when :meth:`validate` reports errors."""
        errors = cls.validate(spec)
        if errors:
            raise InvalidClientSpecError(fields=errors)
