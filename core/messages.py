from __future__ import annotations

# User-facing (pt-BR) texts shown by the storefront.

PHONE_INVALID = "Telefone deve ter 11 dígitos"
PASSWORD_POLICY = (
    "A senha deve conter no mínimo 6 caracteres, incluindo letra maiúscula, número e caractere especial"
)
PASSWORD_MISMATCH = "As senhas não coincidem"

AUTH_DUPLICATE = "Este e-mail já está cadastrado. Tente fazer login."
AUTH_INVALID_CREDENTIALS = "E-mail ou senha incorretos."
AUTH_EMAIL_NOT_CONFIRMED = "Por favor, confirme seu e-mail antes de fazer login."
AUTH_WEAK_PASSWORD = "Senha muito fraca. Use pelo menos 6 caracteres com letras, números e símbolos."
AUTH_GENERIC = "Erro ao processar. Verifique se o banco de dados está configurado corretamente."
AUTH_REQUIRED_TO_BOOK = "Você precisa estar autenticado para agendar um serviço"
AUTH_SESSION_INVALID = "Sessão inválida ou expirada"
API_KEY_INVALID = "Chave de API ausente ou inválida"

ACCESS_DENIED = "Acesso negado"

BOOKING_SUCCESS = "Agendamento realizado com sucesso! Entraremos em contato em breve para confirmar."
BOOKING_FAILED = "Erro ao criar agendamento"
BOOKING_DATE_IN_PAST = "A data do agendamento não pode ser anterior a hoje"
BOOKING_REQUIRED_FIELDS = "Preencha todos os campos obrigatórios"

APPOINTMENT_NOT_FOUND = "Agendamento não encontrado"
APPOINTMENTS_LOAD_FAILED = "Erro ao carregar agendamentos"
APPOINTMENT_UPDATE_FAILED = "Erro ao atualizar status"
APPOINTMENT_DELETE_FAILED = "Erro ao excluir agendamento"
APPOINTMENT_DELETED = "Agendamento excluído."
TRANSITION_NOT_ALLOWED = "Transição de status não permitida"
DELETE_CONFIRMATION_REQUIRED = "Confirme a exclusão para continuar"

STATS_LOAD_FAILED = "Erro ao carregar estatísticas"
DATA_LOAD_FAILED = "Erro ao carregar dados"

SERVICE_NAME_REQUIRED = "Nome do serviço é obrigatório"
SERVICE_SAVE_FAILED = "Erro ao salvar serviço"
SERVICE_DELETE_FAILED = "Erro ao deletar serviço"
SERVICE_NOT_FOUND = "Serviço não encontrado"

PRODUCT_REQUIRED_FIELDS = "Preencha todos os campos obrigatórios"
PRODUCT_IMAGE_REQUIRED = "Selecione uma imagem"
PRODUCT_PRICE_INVALID = "Preço inválido"
PRODUCT_SAVE_FAILED = "Erro ao salvar produto"
PRODUCT_CREATED = "Produto adicionado com sucesso!"
PRODUCT_UPDATED = "Produto atualizado com sucesso!"
PRODUCT_DELETED = "Produto removido com sucesso!"
PRODUCT_DELETE_FAILED = "Erro ao remover produto"
PRODUCT_FEATURED_FAILED = "Erro ao atualizar destaque"
PRODUCT_NOT_FOUND = "Produto não encontrado"

IMAGE_TYPE_INVALID = "Apenas arquivos de imagem são permitidos"
IMAGE_TOO_LARGE = "A imagem deve ter no máximo 5MB"
IMAGE_UPLOAD_FAILED = "Erro ao fazer upload da imagem"
FILE_NOT_FOUND = "Arquivo não encontrado"
