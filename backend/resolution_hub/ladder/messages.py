"""Conversational copy for the chat widget personas."""
from decimal import Decimal

from resolution_hub.core.policies import Rung
from resolution_hub.utils.formatters import format_dollar_amount

PERSONAS = {
    "amy": {
        "name": "Amy",
        "title": "Customer Support",
        "greeting": "Hi! I'm Amy, and I'm here to help you with your order.",
    },
    "sarah": {
        "name": "Sarah",
        "title": "CX Lead",
        "greeting": "Hello! I'm Sarah, the Customer Experience Lead. Let me see how I can assist you.",
    },
    "claudia": {
        "name": "Claudia",
        "title": "Veterinarian",
        "greeting": "Hi there! I'm Dr. Claudia, and I'm here to help with any questions about your pup.",
    },
}

WELCOME = {
    "default": "Welcome to the Resolution Center! I'm here to help.",
    "order": "Let's get your order sorted out. First, I'll need some information.",
    "shipping": "I'll help you track down your shipment. Let's find your order.",
    "subscription": "I can help you manage your subscription. Let me look that up.",
}

ERRORS = {
    "network": "I'm having trouble connecting. Please check your internet and try again.",
    "order_not_found": "I couldn't find any orders with that information. Please double-check and try again.",
    "case_failed": "I'm sorry, something went wrong while saving your case. Please try again.",
    "outside_guarantee": (
        "This order is outside our 90-day guarantee window, so I can't offer a refund here. "
        "You can pick a different order, or email our support team about this one."
    ),
}


def opening_offer_message(ladder_type: str, rung: Rung, amount: Decimal) -> str:
    if ladder_type == "shipping":
        return (
            f"I'm sorry to hear about this issue. I'd like to offer you a {rung.percentage}% refund "
            f"({format_dollar_amount(amount)}) plus we'll reship the correct item. Does that sound good?"
        )
    if ladder_type == "subscription":
        return f"I'd love to help you keep your subscription! How about {rung.percentage}% off your next order?"
    return (
        f"I understand that can be frustrating. I'd like to offer you a {rung.percentage}% refund "
        f"({format_dollar_amount(amount)}) to make things right. Would that work for you?"
    )


def better_offer_message(rung: Rung, amount: Decimal) -> str:
    return (
        f"I understand. Let me do better for you. How about {rung.percentage}% instead? "
        f"That would be {format_dollar_amount(amount)}."
    )


def accepted_message(ladder_type: str, rung: Rung, amount: Decimal) -> str:
    if rung.includes_reship:
        return (
            f"Wonderful! I'll refund {rung.percentage}% ({format_dollar_amount(amount)}) "
            "and ship a replacement right away."
        )
    if ladder_type == "subscription":
        return f"Wonderful! {rung.percentage}% will come off your next subscription order."
    return f"Wonderful! I've processed your {rung.percentage}% refund of {format_dollar_amount(amount)}."


def escalation_message() -> str:
    return (
        "I understand. I'm Sarah, the Customer Experience Lead. Let me personally look into this "
        "for you. I'll create a case and our team will follow up within 24 hours."
    )


def case_created_message(case_id: str) -> str:
    return f"Your case ID is {case_id}. You'll receive a confirmation email shortly."


def offer_description(ladder_type: str, rung: Rung) -> str:
    if rung.includes_reship:
        return f"We'll refund {rung.percentage}% of your order and ship a replacement at no cost."
    if ladder_type == "subscription":
        return f"{rung.percentage}% discount on your next subscription order."
    return f"{rung.percentage}% refund will be credited to your original payment method."
