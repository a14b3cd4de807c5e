from __future__ import annotations

from django import forms

from core.views_utils import _normalize_str

MIN_PASSWORD_LENGTH = 4


class LoginForm(forms.Form):
    username = forms.CharField(label="School ID", required=True, max_length=255)
    password = forms.CharField(label="Password", widget=forms.PasswordInput, required=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.widget.attrs.setdefault("class", "form-control")
        self.fields["username"].widget.attrs.setdefault("placeholder", "Enter School ID")
        self.fields["username"].widget.attrs.setdefault("autocomplete", "username")
        self.fields["password"].widget.attrs.setdefault("placeholder", "Enter password")
        self.fields["password"].widget.attrs.setdefault("autocomplete", "current-password")

    def clean_username(self) -> str:
        return _normalize_str(self.cleaned_data.get("username"))


class ChangePasswordForm(forms.Form):
    current_password = forms.CharField(label="Current Password", widget=forms.PasswordInput, required=False)
    new_password = forms.CharField(label="New Password", widget=forms.PasswordInput, required=False)
    confirm_password = forms.CharField(label="Confirm New Password", widget=forms.PasswordInput, required=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.widget.attrs.setdefault("class", "form-control")
        self.fields["current_password"].widget.attrs.setdefault("autocomplete", "current-password")
        self.fields["new_password"].widget.attrs.setdefault("autocomplete", "new-password")
        self.fields["confirm_password"].widget.attrs.setdefault("autocomplete", "new-password")

    def clean(self):
        cleaned = super().clean()
        current = cleaned.get("current_password") or ""
        new = cleaned.get("new_password") or ""
        confirm = cleaned.get("confirm_password") or ""

        # Checked in this order so the user sees one actionable message.
        if not current or not new or not confirm:
            raise forms.ValidationError("Complete all fields.")
        if len(new) < MIN_PASSWORD_LENGTH:
            raise forms.ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if new == current:
            raise forms.ValidationError("New password must be different from current password.")
        if new != confirm:
            raise forms.ValidationError("Passwords do not match.")
        return cleaned
