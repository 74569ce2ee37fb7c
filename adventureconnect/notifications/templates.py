"""Transactional email templates.

Each template takes the context dict passed to ``Notifier.notify`` and
returns ``(subject, body)``.
"""
from typing import Callable, Dict, Tuple

SIGNATURE = "Best regards,\nAdventureConnect Team"


def welcome_traveler(data: dict) -> Tuple[str, str]:
    body = (
        f"Welcome to AdventureConnect, {data['first_name']}!\n\n"
        "Get ready to discover unique travel experiences from passionate local experts.\n"
        "Browse curated trips, filter by destination, activity and dates, "
        "and send inquiries directly to providers.\n\n"
        f"{SIGNATURE}"
    )
    return "Welcome to AdventureConnect!", body


def welcome_provider(data: dict) -> Tuple[str, str]:
    body = (
        f"Welcome to AdventureConnect, {data['first_name']}!\n\n"
        "Thank you for joining our community of specialized travel providers.\n"
        "1. Complete your provider profile\n"
        "2. Create your first trip listing\n"
        "3. Wait for approval from our team\n"
        "4. Start receiving booking inquiries!\n\n"
        f"{SIGNATURE}"
    )
    return "Welcome to AdventureConnect!", body


def booking_confirmation(data: dict) -> Tuple[str, str]:
    body = (
        "Thank you for your booking inquiry! The provider will review your request and respond soon.\n\n"
        f"Booking number: {data['booking_number']}\n"
        f"Trip: {data['trip_title']}\n"
        f"Provider: {data['provider_name']}\n"
        f"Travel date: {data['travel_date']}\n"
        f"Participants: {data['participant_count']}\n"
        f"Total price: ${data['total_price']}\n\n"
        f"{SIGNATURE}"
    )
    return f"Booking Confirmation - {data['booking_number']}", body


def booking_inquiry(data: dict) -> Tuple[str, str]:
    body = (
        "You have received a new booking inquiry for your trip.\n\n"
        f"Booking number: {data['booking_number']}\n"
        f"Trip: {data['trip_title']}\n"
        f"Travel date: {data['travel_date']}\n"
        f"Participants: {data['participant_count']}\n"
        f"Traveler: {data['traveler_name']} <{data['traveler_email']}>\n"
        f"Special requests: {data.get('special_requests') or 'None specified'}\n\n"
        "Please log in to your AdventureConnect dashboard to respond to this inquiry.\n\n"
        f"{SIGNATURE}"
    )
    return f"New Booking Inquiry for {data['trip_title']}", body


def booking_status_changed(data: dict) -> Tuple[str, str]:
    body = (
        f"Booking {data['booking_number']} for \"{data['trip_title']}\" "
        f"is now {data['booking_status']}.\n"
    )
    if data.get("message"):
        body += f"\nMessage: {data['message']}\n"
    body += f"\n{SIGNATURE}"
    return f"Booking {data['booking_number']} {data['booking_status']}", body


TEMPLATES: Dict[str, Callable[[dict], Tuple[str, str]]] = {
    "welcome_traveler": welcome_traveler,
    "welcome_provider": welcome_provider,
    "booking_confirmation": booking_confirmation,
    "booking_inquiry": booking_inquiry,
    "booking_status_changed": booking_status_changed,
}
