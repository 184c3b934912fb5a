from django.core.management.base import BaseCommand

from content import documents
from content.exceptions import DocumentWriteError
from content.services import get_data_service


class Command(BaseCommand):
    help = 'Reports whether each content document loads from disk or falls back to its default.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--write-defaults',
            action='store_true',
            help='Write the default document for every document file that does not exist yet.',
        )

    def handle(self, *args, **options):
        data_service = get_data_service()
        defaulted_count = 0

        for name in documents.DOCUMENT_NAMES:
            result = data_service.load(name)
            if not result.is_default:
                self.stdout.write(self.style.SUCCESS(f'{name}: loaded'))
                continue

            defaulted_count += 1
            self.stdout.write(self.style.WARNING(f'{name}: using default ({result.cause})'))

            if options['write_defaults'] and not data_service.store.exists(name):
                try:
                    data_service.save(name, documents.default_for(name))
                except DocumentWriteError as e:
                    self.stderr.write(self.style.ERROR(f'{name}: could not write default ({e})'))
                else:
                    self.stdout.write(self.style.SUCCESS(f'{name}: default written'))

        if defaulted_count:
            self.stdout.write(self.style.WARNING(f'{defaulted_count} document(s) are using defaults.'))
        else:
            self.stdout.write(self.style.SUCCESS('All documents loaded from disk.'))
