import django_filters

from modules.accounts.models import Account


class AccountFilter(django_filters.FilterSet):
    email = django_filters.CharFilter(field_name="email", lookup_expr="iexact")
    name = django_filters.CharFilter(field_name="first_name", lookup_expr="icontains")
    role = django_filters.CharFilter(field_name="role", lookup_expr="iexact")
    active = django_filters.BooleanFilter(field_name="is_active")

    class Meta:
        model = Account
        fields = ["email", "name", "role", "active"]
