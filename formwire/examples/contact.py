"""Example contact form."""

import logging
from datetime import datetime

from formwire.fields import CheckboxField, SelectField, TextareaField, TextInputField
from formwire.form import Form

logger = logging.getLogger(__name__)

SUBJECTS = {
    "general": "General Inquiry",
    "support": "Technical Support",
    "billing": "Billing Question",
    "partnership": "Partnership",
}


class ContactForm(Form):
    def configure(self) -> None:
        self.set_title("Contact Us").set_configuration(
            {
                "width": "max-w-2xl",
                "submitLabel": "Send Message",
                "layout": "vertical",
            }
        ).set_success_messages(
            ["Thank you for your message! We will get back to you within 24 hours."]
        )

    def fields(self):
        return [
            TextInputField.make("name")
            .set_label("Full Name")
            .set_required()
            .set_placeholder("Enter your full name")
            .max_length(100)
            .add_transformer(str.strip),
            TextInputField.make("email")
            .set_label("Email Address")
            .input_type("email")
            .set_required()
            .set_placeholder("Enter your email address")
            .rules(["email"]),
            SelectField.make("subject")
            .set_label("Subject")
            .set_required()
            .placeholder_option("Select a subject")
            .set_options(SUBJECTS)
            .rules([f"in:{','.join(SUBJECTS)}"]),
            TextareaField.make("message")
            .set_label("Message")
            .set_required()
            .set_placeholder("Please enter your message here...")
            .rows(6)
            .max_length(1000),
            CheckboxField.make("newsletter")
            .set_label("Subscribe to our newsletter")
            .set_help_text("Stay updated with our latest news and updates"),
            CheckboxField.make("terms")
            .set_label("I agree to the Terms and Conditions")
            .rules(["accepted"])
            .set_help_text("You must agree to continue"),
        ]

    def handle(self, data):
        logger.info(
            "Contact form submitted by %s <%s> (subject: %s)",
            data["name"],
            data["email"],
            data["subject"],
        )
        return {
            "reference": f"MSG-{datetime.now():%Y%m%d-%H%M%S}",
            "newsletter": bool(data.get("newsletter", False)),
        }
