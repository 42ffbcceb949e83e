from django import forms
from django.contrib.auth.password_validation import validate_password


class AdminLoginForm(forms.Form):
    username = forms.CharField(max_length=150)
    password = forms.CharField(widget=forms.PasswordInput)


class AdminSignupForm(forms.Form):
    username = forms.CharField(max_length=150)
    password = forms.CharField(widget=forms.PasswordInput)
    password_confirm = forms.CharField(widget=forms.PasswordInput)
    name = forms.CharField(max_length=128)
    phone_number = forms.CharField(max_length=32, required=False)

    def clean_password(self):
        password = self.cleaned_data["password"]
        validate_password(password)
        return password

    def clean(self):
        data = super().clean()
        if data.get("password") and data.get("password") != data.get("password_confirm"):
            self.add_error("password_confirm", "Passwords do not match.")
        return data


class AdminProviderSignupForm(forms.Form):
    name = forms.CharField(max_length=128)
    phone_number = forms.CharField(max_length=32, required=False)


class StudentSignupForm(forms.Form):
    name = forms.CharField(max_length=64)
    phone = forms.CharField(max_length=32)
    school_name = forms.CharField(max_length=128, required=False)
    school_type = forms.CharField(max_length=32, required=False)
    grade = forms.CharField(max_length=16, required=False)
    parent_phone = forms.CharField(max_length=32)
    parent_relation = forms.CharField(max_length=32, required=False)


class ParentSignupForm(forms.Form):
    name = forms.CharField(max_length=128, required=False)
