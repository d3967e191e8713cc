"""
Cabin (reading-room seat) and hostel (bed) bookings
"""

from sqlalchemy import Column, String, Integer, DateTime, JSON, Uuid
import enum

from reconciler.models.base import BaseModel, enum_type


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class BookingFieldsMixin:
    """
    Columns shared by both booking variants
    """
    booking_id = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    months = Column(Integer)
    total_price = Column(Integer, nullable=False, default=0)

    status = Column(enum_type(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True)
    payment_status = Column(enum_type(BookingStatus), default=BookingStatus.PENDING, nullable=False)
    payment_method = Column(String(50))
    payment_date = Column(DateTime(timezone=True))
    razorpay_order_id = Column(String(64))

    # Append-only logs, one entry per transaction
    renewal_history = Column(JSON, nullable=False, default=list)
    coupons_history = Column(JSON, nullable=False, default=list)


class CabinBooking(BookingFieldsMixin, BaseModel):
    """
    Reading-room seat booking
    """
    __tablename__ = "cabin_bookings"

    cabin_id = Column(Uuid(as_uuid=True), nullable=False)
    seat_id = Column(Uuid(as_uuid=True), nullable=False)
    duration_count = Column(Integer, nullable=False, default=1)

    def __repr__(self):
        return f"<CabinBooking(id={self.id}, booking_id={self.booking_id}, status={self.status})>"


class HostelBooking(BookingFieldsMixin, BaseModel):
    """
    Hostel bed booking
    """
    __tablename__ = "hostel_bookings"

    hostel_id = Column(Uuid(as_uuid=True), nullable=False)
    room_id = Column(Uuid(as_uuid=True), nullable=False)
    bed_id = Column(Uuid(as_uuid=True), nullable=False)

    def __repr__(self):
        return f"<HostelBooking(id={self.id}, booking_id={self.booking_id}, status={self.status})>"
