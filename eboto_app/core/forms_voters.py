from __future__ import annotations

import os

from django import forms

from core.filters import VOTER_STATUS_ALL, VOTER_STATUS_NOT_VOTED, VOTER_STATUS_VOTED
from core.forms_auth import MIN_PASSWORD_LENGTH
from core.schemas import DEFAULT_LEVEL, LEVELS, Voter
from core.views_utils import _normalize_str

_LEVEL_CHOICES = [(level, level) for level in LEVELS]
_STATUS_CHOICES = [("0", "0 (Not Voted)"), ("1", "1 (Voted)")]

IMPORT_EXTENSIONS: frozenset[str] = frozenset({".csv", ".xlsx", ".xls"})
IMPORT_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "text/csv",
        "application/csv",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)


def _styled(form: forms.Form) -> None:
    for field in form.fields.values():
        if isinstance(field, forms.ChoiceField):
            field.widget.attrs.setdefault("class", "form-select")
        else:
            field.widget.attrs.setdefault("class", "form-control")


class VoterCreateForm(forms.Form):
    school_id = forms.CharField(label="School ID", required=False, max_length=64)
    department = forms.ChoiceField(label="Department", choices=_LEVEL_CHOICES, initial=DEFAULT_LEVEL)
    full_name = forms.CharField(label="Full Name", required=False, max_length=255)
    course = forms.CharField(label="Course", required=False, max_length=255)
    year = forms.CharField(label="Year", required=False, max_length=64)
    status = forms.TypedChoiceField(label="Status", choices=_STATUS_CHOICES, coerce=int, initial="0")
    password = forms.CharField(label="Password", widget=forms.PasswordInput(render_value=True), required=False)
    confirm_password = forms.CharField(
        label="Confirm Password", widget=forms.PasswordInput(render_value=True), required=False
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _styled(self)
        for key in ("required", "invalid_choice"):
            self.fields["department"].error_messages[key] = "Please select a department."
        self.fields["password"].widget.attrs.setdefault("autocomplete", "new-password")
        self.fields["confirm_password"].widget.attrs.setdefault("autocomplete", "new-password")

    def clean(self):
        cleaned = super().clean()
        school_id = _normalize_str(cleaned.get("school_id"))
        full_name = _normalize_str(cleaned.get("full_name"))
        year = _normalize_str(cleaned.get("year"))
        if not school_id or not full_name or not year:
            raise forms.ValidationError("School ID, Full Name, and Year are required.")

        password = cleaned.get("password") or ""
        if not password:
            raise forms.ValidationError("Password is required.")
        if password != (cleaned.get("confirm_password") or ""):
            raise forms.ValidationError("Passwords do not match.")
        return cleaned

    def api_payload(self) -> dict[str, object]:
        data = self.cleaned_data
        return {
            "schoolId": _normalize_str(data.get("school_id")),
            "fullName": _normalize_str(data.get("full_name")),
            "course": _normalize_str(data.get("course")) or None,
            "year": _normalize_str(data.get("year")),
            "status": data.get("status") or 0,
            "department": data["department"],
            "password": data["password"],
        }


class VoterEditForm(forms.Form):
    full_name = forms.CharField(label="Full Name", required=False, max_length=255)
    course = forms.CharField(label="Course", required=False, max_length=255)
    year = forms.CharField(label="Year", required=False, max_length=64)
    status = forms.TypedChoiceField(label="Status", choices=_STATUS_CHOICES, coerce=int)
    password = forms.CharField(
        label="New Password",
        widget=forms.PasswordInput,
        required=False,
        help_text="Leave blank to keep the current password.",
    )
    confirm_password = forms.CharField(label="Confirm New Password", widget=forms.PasswordInput, required=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _styled(self)
        self.fields["password"].widget.attrs.setdefault("autocomplete", "new-password")
        self.fields["confirm_password"].widget.attrs.setdefault("autocomplete", "new-password")

    @classmethod
    def initial_for(cls, voter: Voter) -> dict[str, object]:
        return {
            "full_name": voter.full_name,
            "course": voter.course or "",
            "year": voter.year,
            "status": str(voter.status),
        }

    def clean(self):
        cleaned = super().clean()
        if not _normalize_str(cleaned.get("full_name")) or not _normalize_str(cleaned.get("year")):
            raise forms.ValidationError("Full Name and Year are required.")

        password = cleaned.get("password") or ""
        confirm = cleaned.get("confirm_password") or ""
        if password or confirm:
            if password != confirm:
                raise forms.ValidationError("Passwords do not match.")
            if len(password) < MIN_PASSWORD_LENGTH:
                raise forms.ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return cleaned

    def api_payload(self) -> dict[str, object]:
        data = self.cleaned_data
        payload: dict[str, object] = {
            "fullName": _normalize_str(data.get("full_name")),
            "course": _normalize_str(data.get("course")) or None,
            "year": _normalize_str(data.get("year")),
            "status": data.get("status") or 0,
        }
        if data.get("password"):
            payload["password"] = data["password"]
        return payload


class VoterImportForm(forms.Form):
    level = forms.ChoiceField(label="Level", choices=_LEVEL_CHOICES)
    file = forms.FileField(label="File", required=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _styled(self)
        self.fields["file"].widget.attrs.setdefault("accept", ".csv,.xlsx,.xls")

    def clean_file(self):
        upload = self.cleaned_data.get("file")
        if not upload:
            raise forms.ValidationError("Please choose an Excel or CSV file first.")

        ext = os.path.splitext(str(getattr(upload, "name", "") or ""))[1].lower()
        content_type = str(getattr(upload, "content_type", "") or "").split(";")[0].strip().lower()
        if ext not in IMPORT_EXTENSIONS and content_type not in IMPORT_CONTENT_TYPES:
            raise forms.ValidationError("Unsupported file type. Please upload .csv, .xlsx, or .xls.")
        return upload


class VoterFilterForm(forms.Form):
    department = forms.ChoiceField(label="Department", required=False, choices=_LEVEL_CHOICES)
    q = forms.CharField(label="Search", required=False)
    status = forms.ChoiceField(
        label="Status",
        required=False,
        choices=[
            (VOTER_STATUS_ALL, "All"),
            (VOTER_STATUS_VOTED, "Voted"),
            (VOTER_STATUS_NOT_VOTED, "Not Voted"),
        ],
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _styled(self)
        self.fields["q"].widget.attrs.setdefault("placeholder", "Search ID, name, course, year")

    def criteria(self) -> tuple[str, str, str]:
        """Return (department, q, status); only an invalid field falls back to its default."""

        self.is_valid()
        data = self.cleaned_data
        return (
            data.get("department") or DEFAULT_LEVEL,
            _normalize_str(data.get("q")),
            data.get("status") or VOTER_STATUS_ALL,
        )
