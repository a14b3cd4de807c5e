from __future__ import annotations

from django import forms

from core.filters import ALL
from core.schemas import DEFAULT_LEVEL, GENDERS, LEVELS, POSITIONS, Candidate
from core.views_utils import _normalize_str

_LEVEL_CHOICES = [(level, level) for level in LEVELS]
_POSITION_CHOICES = [(p, p) for p in POSITIONS]
_GENDER_CHOICES = [(g, g) for g in GENDERS]


class CandidateForm(forms.Form):
    level = forms.ChoiceField(label="Level", choices=_LEVEL_CHOICES, widget=forms.HiddenInput)
    position = forms.ChoiceField(label="Position", choices=_POSITION_CHOICES)
    party_list = forms.CharField(label="Party List", required=False, max_length=255)
    first_name = forms.CharField(label="First Name", max_length=255)
    middle_name = forms.CharField(label="Middle Name", required=False, max_length=255)
    last_name = forms.CharField(label="Last Name", max_length=255)
    gender = forms.ChoiceField(label="Gender", choices=_GENDER_CHOICES)
    year = forms.CharField(label="Year", required=False, max_length=64)
    photo = forms.FileField(label="Photo", required=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name, field in self.fields.items():
            if name == "photo":
                field.widget.attrs.setdefault("class", "form-control")
                field.widget.attrs.setdefault("accept", "image/*")
            elif isinstance(field, forms.ChoiceField):
                field.widget.attrs.setdefault("class", "form-select")
            else:
                field.widget.attrs.setdefault("class", "form-control")
        self.fields["year"].widget.attrs.setdefault("placeholder", 'e.g. "1st Year" or "Grade 11"')

    @classmethod
    def initial_for(cls, candidate: Candidate) -> dict[str, object]:
        return {
            "level": candidate.level or DEFAULT_LEVEL,
            "position": candidate.position,
            "party_list": candidate.party_list,
            "first_name": candidate.first_name,
            "middle_name": candidate.middle_name,
            "last_name": candidate.last_name,
            "gender": candidate.gender,
            "year": candidate.year,
        }

    def clean_year(self) -> str:
        year = _normalize_str(self.cleaned_data.get("year"))
        if not year:
            raise forms.ValidationError("Year is required.")
        if year.isdigit():
            raise forms.ValidationError(
                'Please enter a descriptive year like "1st Year" or "Grade 11", not just digits.'
            )
        return year

    def api_fields(self) -> dict[str, str]:
        """Multipart field names expected by the candidates endpoint."""

        data = self.cleaned_data
        return {
            "level": data["level"],
            "position": data["position"],
            "partyList": _normalize_str(data.get("party_list")),
            "firstName": _normalize_str(data.get("first_name")),
            "middleName": _normalize_str(data.get("middle_name")),
            "lastName": _normalize_str(data.get("last_name")),
            "gender": data["gender"],
            "year": data["year"],
        }


class CandidateFilterForm(forms.Form):
    q = forms.CharField(label="Search", required=False)
    level = forms.ChoiceField(label="Level", required=False, choices=[(ALL, ALL), *_LEVEL_CHOICES])
    position = forms.ChoiceField(label="Position", required=False, choices=[(ALL, ALL), *_POSITION_CHOICES])
    gender = forms.ChoiceField(label="Gender", required=False, choices=[(ALL, ALL), *_GENDER_CHOICES])
    # Free text so a party that has since disappeared still filters.
    party = forms.CharField(label="Party", required=False, widget=forms.Select)

    def __init__(self, *args, parties: list[str] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["party"].widget.choices = [(ALL, ALL), *((p, p) for p in parties or [])]
        for field in self.fields.values():
            field.widget.attrs.setdefault("class", "form-control form-control-sm")
        self.fields["q"].widget.attrs.setdefault("placeholder", "Search name, position, party, year")

    def criteria(self) -> dict[str, str]:
        """Each field stands alone; an unrecognised value counts as "All"."""

        self.is_valid()
        data = self.cleaned_data
        return {
            "q": _normalize_str(data.get("q")),
            "level": data.get("level") or ALL,
            "position": data.get("position") or ALL,
            "gender": data.get("gender") or ALL,
            "party": _normalize_str(data.get("party")) or ALL,
        }
