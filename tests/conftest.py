"""pytest configuration and fixtures for auto-form tests."""

import pytest

from auto_form.config import AutoFormConfig
from auto_form.models.field_definitions import FormDefinition


def option_list(*values: str) -> list[dict]:
    return [{"label": v, "value": v} for v in values]


@pytest.fixture
def config():
    """Default policy, independent of the environment."""
    return AutoFormConfig()


@pytest.fixture
def country_form():
    """`state` is hidden unless `country` is US."""
    return FormDefinition.model_validate(
        {
            "id": "address",
            "title": "Address",
            "fields": [
                {
                    "id": "f-country",
                    "key": "country",
                    "label": "Country",
                    "type": "select",
                    "required": True,
                    "options": option_list("US", "CA"),
                },
                {
                    "id": "f-state",
                    "key": "state",
                    "label": "State",
                    "type": "input",
                    "required": True,
                    "dependencies": [
                        {
                            "sourceField": "country",
                            "type": "HIDES",
                            "when": lambda v: v != "US",
                        }
                    ],
                },
            ],
        }
    )


@pytest.fixture
def contacts_form():
    """Array of contacts whose `value` rules depend on the item's own `type`."""
    return FormDefinition.model_validate(
        {
            "id": "contacts",
            "fields": [
                {
                    "id": "f-contacts",
                    "key": "contacts",
                    "label": "Contacts",
                    "type": "array",
                    "children": [
                        {"id": "c-name", "key": "name", "label": "Name", "type": "input", "required": True},
                        {
                            "id": "c-type",
                            "key": "type",
                            "label": "Type",
                            "type": "select",
                            "options": option_list("Email", "Phone"),
                        },
                        {
                            "id": "c-value",
                            "key": "value",
                            "label": "Value",
                            "type": "input",
                            "dependencies": [
                                {"sourceField": "type", "type": "HIDES", "value": "Phone"},
                            ],
                        },
                        {
                            "id": "c-channel",
                            "key": "channel",
                            "label": "Channel",
                            "type": "radio",
                            "options": option_list("any"),
                            "dependencies": [
                                {
                                    "sourceField": "type",
                                    "type": "SETS_OPTIONS",
                                    "value": "Phone",
                                    "options": option_list("sms", "call"),
                                },
                            ],
                        },
                    ],
                }
            ],
        }
    )
