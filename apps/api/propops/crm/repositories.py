from __future__ import annotations

from propops.crm.models import BookingRequest, Client, ContactPerson, Employee, Lead, Property
from propops.platform.repository import BaseRepository


class ClientRepository(BaseRepository[Client]):
    model = Client
    entity_label = "Client"


class PropertyRepository(BaseRepository[Property]):
    model = Property
    entity_label = "Property"


class EmployeeRepository(BaseRepository[Employee]):
    model = Employee
    entity_label = "Employee"


class ContactRepository(BaseRepository[ContactPerson]):
    model = ContactPerson
    entity_label = "Contact"


class LeadRepository(BaseRepository[Lead]):
    model = Lead
    entity_label = "Lead"


class BookingRepository(BaseRepository[BookingRequest]):
    model = BookingRequest
    entity_label = "Booking request"

