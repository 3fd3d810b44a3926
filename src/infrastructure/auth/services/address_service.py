"""
Address book service.

Create, list, update and delete a user's shipping and billing addresses.
Every operation is scoped to the calling user: an address owned by someone
else is reported as not found.
"""

import logging
from dataclasses import replace
from uuid import UUID

from src.application.interfaces.exceptions import AddressNotFoundError
from src.application.interfaces.repositories import IUserRepository

from ..exceptions import InvalidInputError, NotFoundError, store_errors
from ..models import ADDRESS_TYPES, UserAddress
from ..types import AddressInput, AddressView

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("first_name", "last_name", "address_line1", "city", "postal_code")


def _validate(data: AddressInput) -> AddressInput:
    errors: list[str] = []

    for name in _REQUIRED_FIELDS:
        if not (getattr(data, name) or "").strip():
            errors.append(f"{name} is required")

    if data.type not in ADDRESS_TYPES:
        errors.append(f"type must be one of {', '.join(ADDRESS_TYPES)}")

    country = (data.country or "").strip().upper()
    if len(country) != 2 or not country.isalpha():
        errors.append("country must be a two-letter ISO code")

    if errors:
        raise InvalidInputError(errors)

    return replace(data, country=country)


class AddressService:
    """User address management."""

    def __init__(self, repository: IUserRepository):
        self.repository = repository

    def _get_owned(self, user_id: UUID, address_id: UUID) -> UserAddress:
        try:
            address = self.repository.get_address_by_id(address_id)
        except AddressNotFoundError as e:
            raise NotFoundError("Address") from e
        if address.user_id != user_id:
            logger.info(f"User {user_id} asked for address {address_id} owned by another user")
            raise NotFoundError("Address")
        return address

    async def list_addresses(self, user_id: UUID) -> list[AddressView]:
        """Addresses of the user, defaults first, then newest first."""
        with store_errors("list addresses"):
            addresses = self.repository.get_addresses(user_id)
        return [AddressView.from_model(a) for a in addresses]

    async def get_address(self, user_id: UUID, address_id: UUID) -> AddressView:
        with store_errors("get address"):
            return AddressView.from_model(self._get_owned(user_id, address_id))

    async def create_address(self, user_id: UUID, data: AddressInput) -> AddressView:
        """
        Add an address for the user.

        A new default replaces any previous default of the same type.

        Raises:
            InvalidInputError: If required fields are missing or malformed
        """
        data = _validate(data)
        address = UserAddress(user_id=user_id, **vars(data))

        with store_errors("create address"):
            address = self.repository.create_address(address)

        logger.info(f"Created {address.type} address {address.id} for user {user_id}")
        return AddressView.from_model(address)

    async def update_address(
        self, user_id: UUID, address_id: UUID, data: AddressInput
    ) -> AddressView:
        """
        Replace the fields of one of the user's addresses.

        Raises:
            NotFoundError: If the address does not exist or belongs to another user
            InvalidInputError: If required fields are missing or malformed
        """
        data = _validate(data)

        with store_errors("update address"):
            address = self._get_owned(user_id, address_id)
            for name, value in vars(data).items():
                setattr(address, name, value)
            try:
                address = self.repository.update_address(address)
            except AddressNotFoundError as e:
                raise NotFoundError("Address") from e

        logger.info(f"Updated address {address_id} for user {user_id}")
        return AddressView.from_model(address)

    async def delete_address(self, user_id: UUID, address_id: UUID) -> None:
        """
        Delete one of the user's addresses.

        Raises:
            NotFoundError: If the address does not exist or belongs to another user
        """
        with store_errors("delete address"):
            self._get_owned(user_id, address_id)
            try:
                self.repository.delete_address(address_id)
            except AddressNotFoundError as e:
                raise NotFoundError("Address") from e

        logger.info(f"Deleted address {address_id} for user {user_id}")
