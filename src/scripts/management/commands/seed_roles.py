"""Seed the baseline ADMIN and CLIENT roles and the initial administrator."""

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from access_control.hierarchy import RoleName
from access_control.models import Role
from authentication.models import User

BASELINE_ROLES = [
    {
        "name": RoleName.ADMIN,
        "slug": "admin",
        "description": "Administrator role with full access",
    },
    {
        "name": RoleName.CLIENT,
        "slug": "client",
        "description": "Client role with purchase permissions",
    },
]


def create_baseline_roles() -> dict[str, Role]:
    """Create ADMIN and CLIENT if missing and return a name->Role map."""
    roles = {}
    for definition in BASELINE_ROLES:
        role, _ = Role.objects.alive().get_or_create(
            name=definition["name"],
            defaults={"slug": definition["slug"], "description": definition["description"]},
        )
        roles[str(definition["name"])] = role
    return roles


def create_admin_user(role: Role, email: str, password: str, full_name: str = "", phone_number: str = ""):
    """Create the administrator account; returns None when the email is taken."""
    if User.objects.filter(email__iexact=email).exists():
        return None
    return User.objects.create_user(
        email=email,
        password=password,
        role=role,
        full_name=full_name,
        phone_number=phone_number,
    )


class Command(BaseCommand):
    """Management command creating the roles the permission sync relies on."""

    help = (
        "Create the ADMIN and CLIENT roles and an administrator account from "
        "ADMIN_EMAIL/ADMIN_PASSWORD. Run before sync_permissions."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--skip-admin",
            action="store_true",
            help="Only create the roles, not the administrator account.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        self.stdout.write("Seeding roles...")
        roles = create_baseline_roles()
        self.stdout.write(f"Roles present: {', '.join(sorted(roles))}")

        if options.get("skip_admin"):
            self.stdout.write(self.style.SUCCESS("Role seed completed."))
            return

        if not settings.ADMIN_PASSWORD:
            raise CommandError("ADMIN_PASSWORD must be set to create the administrator account")
        admin = create_admin_user(
            roles[RoleName.ADMIN],
            settings.ADMIN_EMAIL,
            settings.ADMIN_PASSWORD,
            full_name=settings.ADMIN_NAME,
            phone_number=settings.ADMIN_PHONE,
        )
        if admin is None:
            self.stdout.write(self.style.WARNING(f"Admin user {settings.ADMIN_EMAIL} already exists."))
        else:
            self.stdout.write(f"Created admin user {admin.email}")
        self.stdout.write(self.style.SUCCESS("Role seed completed."))
