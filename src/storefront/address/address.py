"""Address book — a read-only collaborator of checkout.

Checkout only resolves an address id to the details it needs; it never
writes addresses. ``AddAddress`` exists so a user can build an address book.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.utils import clock


@storefront.aggregate
class Address:
    user_id = Identifier(required=True)
    full_name = String(required=True, max_length=150)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=30)
    created_at = DateTime()

    def summary(self) -> str:
        parts = [self.full_name, self.street, f"{self.city}, {self.state or ''} {self.postal_code}".strip(), self.country]
        return "\n".join(p for p in parts if p)


@storefront.command(part_of="Address")
class AddAddress:
    user_id = Identifier(required=True)
    full_name = String(required=True, max_length=150)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=30)


@storefront.command_handler(part_of=Address)
class AddressBookHandler:
    @handle(AddAddress)
    def add_address(self, command):
        address = Address(
            user_id=command.user_id,
            full_name=command.full_name,
            street=command.street,
            city=command.city,
            state=command.state,
            postal_code=command.postal_code,
            country=command.country,
            phone=command.phone,
            created_at=clock.now(),
        )
        current_domain.repository_for(Address).add(address)
        return str(address.id)


def resolve_address(address_id, user_id, field: str) -> Address:
    """Load an address that belongs to ``user_id`` or raise ``ValidationError`` keyed by ``field``."""
    try:
        address = current_domain.repository_for(Address).get(address_id)
    except ObjectNotFoundError:
        raise ValidationError({field: ["Address not found"]})

    if str(address.user_id) != str(user_id):
        raise ValidationError({field: ["Address does not belong to this user"]})
    return address
