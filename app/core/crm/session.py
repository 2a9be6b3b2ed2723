"""
Salesforce session handling.

The CRM client library does the actual work (SOAP login, REST queries,
pagination). This module only adapts it to the small surface the features
need and translates its failures into UpstreamError.
"""
from typing import Any, Optional, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from simple_salesforce import Salesforce, format_soql
from simple_salesforce.exceptions import SalesforceAuthenticationFailed, SalesforceError

from app.core import config
from app.core.errors import UpstreamError
from app.utils import get_logger

log = get_logger(__name__)


class CRMIdentity(BaseModel):
    """The user the service is logged in as."""
    user_id: str
    username: str


def _strip_attributes(record: dict) -> dict:
    """Drop the REST "attributes" envelope, recursing into relationship fields."""
    row = {}
    for key, value in record.items():
        if key == "attributes":
            continue
        row[key] = _strip_attributes(value) if isinstance(value, dict) else value
    return row


class CRMSession:
    """An authenticated connection, valid for the duration of one request."""

    def __init__(self, connection: Salesforce, username: str):
        self._connection = connection
        self._username = username
        self._identity: Optional[CRMIdentity] = None

    def query(self, query: str) -> list[dict[str, Any]]:
        """
        Run a SOQL query and return every row, following pagination.

        Raises:
            UpstreamError: If the query is rejected, the request fails or the client raises
        """
        log.debug("SOQL: %s", " ".join(query.split()))
        try:
            result = self._connection.query_all(query)
        except SalesforceError as e:
            raise UpstreamError("CRM query failed", details=str(e)) from e
        except requests.RequestException as e:
            raise UpstreamError("CRM request failed", details=str(e)) from e
        except Exception as e:
            raise UpstreamError("Unexpected CRM failure", details=str(e)) from e
        return [_strip_attributes(record) for record in result.get("records", [])]

    def identity(self) -> CRMIdentity:
        """Id and username of the logged-in user."""
        if self._identity is None:
            rows = self.query(format_soql("SELECT Id, Username FROM User WHERE Username = {}", self._username))
            if not rows:
                raise UpstreamError("Authenticated user could not be resolved", details=self._username)
            self._identity = CRMIdentity(user_id=rows[0]["Id"], username=rows[0]["Username"])
        return self._identity


class SalesforceSessionProvider:
    """Opens Salesforce sessions from the configured credentials."""

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        security_token: Optional[str] = None,
        domain: Optional[str] = None,
        version: Optional[str] = None,
    ):
        self.username = username or config.SALESFORCE_USERNAME
        self.password = password or config.SALESFORCE_PASSWORD
        self.security_token = security_token if security_token is not None else config.SALESFORCE_TOKEN
        self.domain = domain or config.SALESFORCE_DOMAIN
        self.version = version or config.SALESFORCE_API_VERSION

    def authenticate(self) -> CRMSession:
        """
        Log in and return a fresh session.

        Raises:
            UpstreamError: If credentials are missing or rejected, or the login request fails
        """
        if not self.username or not self.password:
            raise UpstreamError("CRM credentials are not configured")

        kwargs: dict[str, Any] = dict(
            username=self.username,
            password=self.password,
            security_token=self.security_token,
            domain=self.domain,
        )
        if self.version:
            kwargs["version"] = self.version

        log.info("Authenticating with Salesforce as %s", self.username)
        try:
            connection = Salesforce(**kwargs)
        except SalesforceAuthenticationFailed as e:
            log.error("Salesforce authentication failed: %s", e)
            raise UpstreamError("CRM authentication failed", details=str(e)) from e
        except requests.RequestException as e:
            log.error("Salesforce login request failed: %s", e)
            raise UpstreamError("CRM authentication failed", details=str(e)) from e
        except Exception as e:
            log.exception("Unexpected failure logging in to Salesforce")
            raise UpstreamError("CRM authentication failed", details=str(e)) from e
        return CRMSession(connection, self.username)


def get_crm_provider() -> SalesforceSessionProvider:
    """
    Dependency for getting the CRM session provider.

    Building the provider does not touch the network; routes call
    authenticate() themselves once their input has been validated.
    """
    return SalesforceSessionProvider()


RowModel = TypeVar("RowModel", bound=BaseModel)


def parse_rows(model: type[RowModel], rows: list[dict[str, Any]]) -> list[RowModel]:
    """
    Validate raw CRM rows into typed records.

    Raises:
        UpstreamError: If a row does not have the expected shape
    """
    try:
        return [model.model_validate(row) for row in rows]
    except PydanticValidationError as e:
        raise UpstreamError(f"Unexpected {model.__name__} row from CRM", details=str(e)) from e
