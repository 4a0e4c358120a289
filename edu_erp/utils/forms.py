"""Form definitions and the submit/cancel behaviour shared by page dialogs."""
from dataclasses import dataclass

from edu_erp.errors import ValidationError


@dataclass(frozen=True)
class FormField:
    name: str
    label: str
    type: str = "text"
    required: bool = False
    options: tuple = ()


class FormValidationError(ValidationError):
    def __init__(self, missing_fields):
        self.missing_fields = list(missing_fields)
        labels = ", ".join(f.label for f in self.missing_fields)
        super().__init__(
            f"Please fill in required fields: {labels}",
            errors={f.name: f"{f.label} is required" for f in self.missing_fields}
        )


class FormDialog:
    """
    Local form state for a list of fields.

    submit() refuses while a required field is empty and keeps the typed
    values; a successful save or a cancel clears them.
    """

    def __init__(self, fields, on_save, form_data=None):
        self.fields = tuple(fields)
        self.on_save = on_save
        self.form_data = dict(form_data or {})

    def change(self, name, value):
        self.form_data[name] = value

    def missing_fields(self):
        return [
            f for f in self.fields
            if f.required and not str(self.form_data.get(f.name) or "").strip()
        ]

    def submit(self):
        missing = self.missing_fields()
        if missing:
            raise FormValidationError(missing)

        result = self.on_save(dict(self.form_data))
        self.form_data = {}
        return result

    def cancel(self):
        self.form_data = {}
