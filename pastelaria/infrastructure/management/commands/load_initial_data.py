from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from pastelaria.core.exceptions import PersistenciaError
from pastelaria.infrastructure.cardapio import CARDAPIO_INICIAL
from pastelaria.infrastructure.instances import obter_repositorios


class Command(BaseCommand):
    help = 'Carrega o cardápio inicial do quiosque no armazenamento configurado'

    def handle(self, *args, **kwargs):
        backend = settings.PASTELARIA_ARMAZENAMENTO
        self.stdout.write(f'Carregando cardápio inicial (armazenamento: {backend})...')

        try:
            criados = obter_repositorios().produtos.carregar_cardapio_inicial(CARDAPIO_INICIAL)
        except PersistenciaError as e:
            raise CommandError(e.message) from e

        if criados:
            self.stdout.write(self.style.SUCCESS(f'{criados} produto(s) criado(s).'))
        else:
            self.stdout.write('Cardápio já estava carregado; nada a fazer.')
