# grantkeeper/application/use_cases/code_exchange_use_cases.py (async version)

"""
Authorization code exchange.

Composes the client registry and the grant store. Every doubtful outcome
is a rejection: a reused code revokes its whole family, and a store
failure during consumption is reported as a failure, never as success.
"""

import logging
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from grantkeeper.adapters.configuration.config import settings
from grantkeeper.application.dtos.token_dto import TokenPair
from grantkeeper.application.ports.inbound import ICodeExchange
from grantkeeper.application.ports.outbound import IGrantStore
from grantkeeper.application.use_cases.client_use_cases import ClientRegistryService
from grantkeeper.domain.exceptions import AlreadyConsumedError, NotFoundError, StoreUnavailableError
from grantkeeper.domain.models.client_domain_model import GrantType
from grantkeeper.domain.models.grant_domain_model import Grant, GrantKind
from grantkeeper.domain.services.grant_service import GrantService, utcnow

logger = logging.getLogger(__name__)


class CodeExchangeService(ICodeExchange):

    def __init__(
            self,
            grants: IGrantStore,
            clients: ClientRegistryService,
            clock: Callable = utcnow,
            access_token_ttl: Optional[timedelta] = None,
            refresh_token_ttl: Optional[timedelta] = None,
            authorization_code_ttl: Optional[timedelta] = None,
    ):
        self.grants = grants
        self.clients = clients
        self.clock = clock
        self.access_token_ttl = access_token_ttl or timedelta(seconds=settings.ACCESS_TOKEN_TTL_SECONDS)
        self.refresh_token_ttl = refresh_token_ttl or timedelta(seconds=settings.REFRESH_TOKEN_TTL_SECONDS)
        self.authorization_code_ttl = authorization_code_ttl or timedelta(
            seconds=settings.AUTHORIZATION_CODE_TTL_SECONDS
        )

    async def issue_code(
            self,
            client_id: str,
            redirect_uri: str,
            account_id: str,
            data: Optional[Dict[str, Any]] = None,
    ) -> Grant:
        """
        Store a new authorization code for a client and account.

        The redirect URI must be registered for the client; the code starts
        a new grant family.

        Raises:
            RedirectMismatchError: If the redirect URI is not registered
        """
        await self.clients.require_redirect(client_id, redirect_uri)

        code = GrantService.issue(
            GrantKind.AUTHORIZATION_CODE,
            client_id=client_id,
            ttl=self.authorization_code_ttl,
            account_id=account_id,
            data={**(data or {}), "redirect_uri": redirect_uri},
            now=self.clock(),
        )
        stored = await self.grants.put(code)
        logger.info(f"Authorization code issued to client {client_id}")
        return stored

    async def exchange(self, code: str, client_id: str, redirect_uri: str) -> TokenPair:
        """
        Redeem an authorization code.

        Args:
            code: Id of the AuthorizationCode grant
            client_id: Client presenting the code
            redirect_uri: Redirect URI sent with the token request

        Returns:
            The issued access token grant and, when the client may refresh,
            a refresh token grant, both in the code's family

        Raises:
            RedirectMismatchError: If the redirect URI is not registered
            NotFoundError: If the code is unknown, expired, or not a code of
                this client
            AlreadyConsumedError: If the code was redeemed before; its family
                is revoked first
            StoreUnavailableError: If the store failed; the code must be
                considered not redeemed
        """
        client = await self.clients.require_redirect(client_id, redirect_uri)

        authorization_code = await self.grants.get(code)
        if authorization_code.kind != GrantKind.AUTHORIZATION_CODE or authorization_code.client_id != client_id:
            logger.warning(f"Code {code} presented by client {client_id} does not belong to it")
            raise NotFoundError("Grant", code)

        try:
            authorization_code = await self.grants.consume(code)
        except AlreadyConsumedError:
            revoked = await self.grants.revoke_family(authorization_code.grant_id)
            logger.warning(
                f"Code reuse detected for client {client_id}; "
                f"family {authorization_code.grant_id} revoked ({revoked} grant(s))"
            )
            raise
        except StoreUnavailableError:
            logger.error(f"Consuming code for client {client_id} failed; rejecting the exchange")
            raise

        now = self.clock()
        data = {"scope": authorization_code.scope}

        access_token = GrantService.issue(
            GrantKind.ACCESS_TOKEN,
            client_id=client_id,
            ttl=self.access_token_ttl,
            account_id=authorization_code.account_id,
            grant_id=authorization_code.grant_id,
            data=data,
            now=now,
        )
        await self.grants.put(access_token)

        refresh_token: Optional[Grant] = None
        if GrantType.REFRESH_TOKEN.value in client.grant_types:
            refresh_token = GrantService.issue(
                GrantKind.REFRESH_TOKEN,
                client_id=client_id,
                ttl=self.refresh_token_ttl,
                account_id=authorization_code.account_id,
                grant_id=authorization_code.grant_id,
                data=dict(data),
                now=now,
            )
            await self.grants.put(refresh_token)

        logger.info(f"Code exchanged for client {client_id} (family {authorization_code.grant_id})")
        return TokenPair(access_token=access_token, refresh_token=refresh_token)
