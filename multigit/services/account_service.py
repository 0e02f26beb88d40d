"""
Account service: registration and approval of login accounts.
"""

import logging
from typing import Any, Dict, List

from ..core.entities import Account, User
from ..core.enums import Role
from ..core.exceptions import NotFoundError, BadRequestError
from ..core.interfaces import DocumentStore
from ..persistence.repositories import AccountRepository, UserRepository


logger = logging.getLogger(__name__)


class AccountService:
    """Service for login accounts and their approval."""

    def __init__(self, database: DocumentStore):
        self._account_repo = AccountRepository(database)
        self._user_repo = UserRepository(database)

    def register_account(self, identifier: str, name: str, email: str, role: Role) -> Account:
        """Create an unapproved account together with its user."""
        if self._account_repo.find_by_email(email):
            raise BadRequestError('Account with this email already exists')
        if self._user_repo.find_by_identifier(identifier):
            raise BadRequestError('User with this identifier already exists')

        user = User(identifier=identifier, name=name)
        self._user_repo.save(user)
        account = Account(email=email, role=role, user=user.id)
        self._account_repo.save(account)
        logger.info("Registered %s account %s", role.value, account.id)
        return account

    def get_account_by_id(self, account_id: str) -> Account:
        """Get an account; NotFound when the id is unknown."""
        account = self._account_repo.find_by_id(account_id)
        if not account:
            raise NotFoundError('Account not found')
        return account

    def get_pending_accounts(self) -> List[Dict[str, Any]]:
        """Accounts still waiting for approval."""
        return [account.to_dict() for account in self._account_repo.find_pending()]

    def approve_accounts(self, account_ids: List[str]) -> None:
        """Approve every listed account, or none of them if any id is unknown."""
        accounts = [self.get_account_by_id(account_id) for account_id in account_ids]
        for account in accounts:
            account.approve()
            self._account_repo.save(account)
