#!/usr/bin/env python3
"""
Contact Form Example

Builds a form with a repeated "contacts" sub-form, drives it through a
FormSession and prints hidden fields, active options and validation
errors as values change.

Usage:
    pip install -e .
    python examples/contact_form_example.py
"""

from auto_form import (
    FormDefinition,
    FormSession,
    compile_form,
    dump_form_json,
    setup_logging,
)


def options(*values):
    return [{"label": v.title(), "value": v} for v in values]


FORM = {
    "id": "contact-card",
    "title": "Contact card",
    "fields": [
        {
            "id": "f-name",
            "key": "name",
            "label": "Full name",
            "type": "input",
            "required": True,
            "rules": ".trim().min(2).max(80)",
        },
        {
            "id": "f-contacts",
            "key": "contacts",
            "label": "Contacts",
            "type": "array",
            "minItems": 1,
            "children": [
                {
                    "id": "c-type",
                    "key": "type",
                    "label": "Type",
                    "type": "select",
                    "required": True,
                    "options": options("email", "phone"),
                },
                {
                    "id": "c-email",
                    "key": "email",
                    "label": "Email",
                    "type": "input",
                    "required": True,
                    "rules": ".email()",
                    "dependencies": [
                        {"sourceField": "type", "type": "HIDES", "when": {"operator": "NOT_EQUALS", "value": "email"}}
                    ],
                },
                {
                    "id": "c-phone",
                    "key": "phone",
                    "label": "Phone",
                    "type": "input",
                    "required": True,
                    "rules": ".regex('^[0-9+ ]{7,}$')",
                    "dependencies": [
                        {"sourceField": "type", "type": "HIDES", "when": {"operator": "NOT_EQUALS", "value": "phone"}}
                    ],
                },
                {
                    "id": "c-channel",
                    "key": "channel",
                    "label": "Preferred channel",
                    "type": "radio",
                    "options": options("mail"),
                    "dependencies": [
                        {
                            "sourceField": "type",
                            "type": "SETS_OPTIONS",
                            "value": "phone",
                            "options": options("sms", "call"),
                        }
                    ],
                },
            ],
        },
    ],
}


def show(session: FormSession) -> None:
    for index, _ in enumerate(session.values.get("contacts") or []):
        prefix = f"contacts[{index}]"
        hidden = [k for k in ("email", "phone") if session.hidden(f"{prefix}.{k}")]
        channels = [o.value for o in session.options_for(f"{prefix}.channel")]
        print(f"  {prefix}: hidden={hidden} channels={channels}")


def main():
    setup_logging()
    form = FormDefinition.model_validate(FORM)

    print("=" * 60)
    print("JSON Schema")
    print("=" * 60)
    print(compile_form(form).to_json_schema())

    session = FormSession(form)
    session.subscribe(lambda snapshot, evaluation: print(f"-- version {snapshot.version}"))

    with session.batch():
        session.set_value("name", "Ada Lovelace")
        session.append_item("contacts", {"type": "email", "email": "ada@example.com"})
        index = session.append_item("contacts", {"type": "email"})
        session.set_value(f"contacts[{index}].type", "phone")
    show(session)

    result = session.validate()
    print(f"Valid: {result.is_valid}")
    for path, message in result.to_pairs():
        print(f"  {path}: {message}")

    session.set_value(f"contacts[{index}].phone", "+1 555 0100")
    session.set_value(f"contacts[{index}].channel", "sms")
    print(f"Valid after fixes: {session.validate().is_valid}")

    print()
    print(dump_form_json(form))


if __name__ == "__main__":
    main()
