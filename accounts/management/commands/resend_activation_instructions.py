"""
Management command to resend activation instructions to a pending user
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounts.services import deliver_activation_instructions


class Command(BaseCommand):
    help = 'Issue a new activation token for a pending user and email the activation instructions again'

    def add_arguments(self, parser):
        parser.add_argument(
            'login',
            type=str,
            help='Login of the pending user',
        )

    def handle(self, *args, **options):
        User = get_user_model()
        login = options['login']

        try:
            user = User.objects.get(login__iexact=login)
        except User.DoesNotExist:
            raise CommandError(f'No user with login "{login}"')

        if user.active:
            raise CommandError(f'User "{user.login}" is already active')

        with transaction.atomic():
            deliver_activation_instructions(user)

        self.stdout.write(
            self.style.SUCCESS(f'Activation instructions queued for {user.email}')
        )
