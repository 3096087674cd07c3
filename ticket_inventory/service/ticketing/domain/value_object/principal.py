import attrs

from ticket_inventory.service.ticketing.domain.enum.user_role import UserRole


@attrs.frozen
class Principal:
    """Verified caller identity handed over by the auth layer."""

    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_staff(self) -> bool:
        """Administrators and organizers may validate tickets and see event-wide listings."""
        return self.role in (UserRole.ADMIN, UserRole.ORGANIZER)
