"""
Booking stores, one per booking type
"""

from typing import Dict, Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.models.booking import CabinBooking, HostelBooking
from reconciler.models.transaction import BookingType

Booking = Union[CabinBooking, HostelBooking]


class BookingRepository:
    """
    Read/persist a booking aggregate. Subclasses pick the table.
    """
    model = None

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, booking_id: UUID) -> Optional[Booking]:
        return await self.session.get(self.model, booking_id)

    async def save(self, booking: Booking) -> Booking:
        """Persist the whole aggregate in one flush"""
        self.session.add(booking)
        await self.session.flush()
        return booking


class CabinBookingRepository(BookingRepository):
    model = CabinBooking


class HostelBookingRepository(BookingRepository):
    model = HostelBooking


def booking_repositories(session: AsyncSession) -> Dict[BookingType, BookingRepository]:
    return {
        BookingType.CABIN: CabinBookingRepository(session),
        BookingType.HOSTEL: HostelBookingRepository(session),
    }
