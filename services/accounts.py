import logging
from datetime import datetime

from app import db
from models import Barangay, Municipality, User
from models.choices import ROLES
from services import mailer, policy, storage
from services.errors import Forbidden, NotFound, ValidationFailed
from services.validation import Validator

logger = logging.getLogger(__name__)

DOCUMENT_FIELDS = ('id_document', 'proof_of_residence')


def _validate_profile(data, password_required=True):
    v = Validator(data)
    v.string('username', required=True, max_length=255)
    v.string('email', required=True, max_length=255)
    v.string('full_name', required=True, max_length=255)
    v.string('phone_number', max_length=20)
    password = v.string('password', required=password_required)
    if password is not None and len(password) < 8:
        v.add_error('password', 'The password must be at least 8 characters.')
    confirmation = data.get('password_confirmation') if data else None
    if password is not None and confirmation is not None and confirmation != password:
        v.add_error('password', 'The password confirmation does not match.')

    email = v.cleaned.get('email')
    if email and '@' not in email:
        v.add_error('email', 'The email must be a valid email address.')
    if email and User.query.filter_by(email=email).first():
        v.add_error('email', 'The email has already been taken.')
    username = v.cleaned.get('username')
    if username and User.query.filter_by(username=username).first():
        v.add_error('username', 'The username has already been taken.')

    municipality_id = v.integer('municipality_id')
    barangay_id = v.integer('barangay_id')
    if municipality_id is not None and db.session.get(Municipality, municipality_id) is None:
        v.add_error('municipality_id', 'The selected municipality_id is invalid.')
    if barangay_id is not None:
        barangay = db.session.get(Barangay, barangay_id)
        if barangay is None:
            v.add_error('barangay_id', 'The selected barangay_id is invalid.')
        elif municipality_id is not None and barangay.municipality_id != municipality_id:
            v.add_error('barangay_id', 'The selected barangay does not belong to the selected municipality.')
        elif municipality_id is None:
            v.cleaned['municipality_id'] = barangay.municipality_id
    return v


def _build_user(cleaned, role):
    user = User(
        username=cleaned['username'],
        email=cleaned['email'],
        full_name=cleaned['full_name'],
        phone_number=cleaned.get('phone_number'),
        role=role,
        municipality_id=cleaned.get('municipality_id'),
        barangay_id=cleaned.get('barangay_id'),
        verification_status='pending' if role == 'resident' else None,
    )
    user.set_password(cleaned['password'])
    return user


def register_resident(data):
    """Public sign-up; only resident accounts, pending verification."""
    v = _validate_profile(data)
    role = (data or {}).get('role') or 'resident'
    if role != 'resident':
        v.add_error('role', 'Only resident accounts can self-register.')
    cleaned = v.validate()

    user = _build_user(cleaned, 'resident')
    db.session.add(user)
    db.session.commit()
    logger.info('Registered resident %s', user.id)
    return user


def authenticate(data):
    v = Validator(data)
    email = v.string('email', required=True)
    password = v.string('password', required=True)
    v.validate()

    user = User.query.filter_by(email=email).first()
    if user is None or not user.check_password(password):
        raise ValidationFailed({'email': ['The provided credentials are incorrect.']})
    if not user.is_active:
        raise Forbidden('Your account is inactive. Please contact administrator.')
    return user


def create_account(creator, data):
    actor = policy.Actor.from_user(creator)
    allowed = policy.creatable_roles(actor.role)
    if not allowed:
        raise Forbidden('You are not allowed to create accounts')

    v = _validate_profile(data)
    role = v.choice('role', allowed, required=True)
    if creator.role == 'municipal_admin':
        # accounts created by a municipal admin stay inside that municipality
        if v.cleaned.get('municipality_id') not in (None, creator.municipality_id):
            v.add_error('municipality_id', 'You can only create accounts in your own municipality.')
        v.cleaned['municipality_id'] = creator.municipality_id
    if role == 'municipal_admin' and v.cleaned.get('municipality_id') is None:
        v.add_error('municipality_id', 'A municipal administrator must belong to a municipality.')
    if role == 'barangay_official' and v.cleaned.get('barangay_id') is None:
        v.add_error('barangay_id', 'A barangay official must belong to a barangay.')
    if role == 'mdrrmo' and v.cleaned.get('municipality_id') is None:
        v.add_error('municipality_id', 'MDRRMO staff must belong to a municipality.')
    cleaned = v.validate()

    user = _build_user(cleaned, role)
    if role == 'resident':
        # staff-created residents are vouched for by the creator
        user.verification_status = 'verified'
        user.verified_by = creator.id
        user.verified_at = datetime.utcnow()
    db.session.add(user)
    db.session.commit()
    logger.info('User %s created %s account %s', creator.id, role, user.id)

    mailer.welcome(user)
    return user


def list_users(actor_user, args):
    actor = policy.Actor.from_user(actor_user)
    if actor.role not in policy.ADMIN_ROLES:
        raise Forbidden('Access forbidden')

    v = Validator(args)
    v.choice('role', ROLES)
    v.integer('municipality_id')
    v.integer('barangay_id')
    v.boolean('is_active')
    filters = v.validate()

    query = User.query
    if actor.role == 'municipal_admin':
        query = query.filter(User.municipality_id == actor.municipality_id)
    for field in ('role', 'municipality_id', 'barangay_id', 'is_active'):
        if field in filters:
            query = query.filter(getattr(User, field) == filters[field])
    return query.order_by(User.created_at.desc(), User.id.desc())


def _get_managed_user(actor_user, user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User not found')
    if not policy.can_manage_user(policy.Actor.from_user(actor_user), user):
        raise Forbidden('Access forbidden')
    return user


def set_active(actor_user, user_id, data):
    user = _get_managed_user(actor_user, user_id)
    v = Validator(data)
    is_active = v.boolean('is_active', required=True)
    v.validate()
    if user.id == actor_user.id and not is_active:
        raise ValidationFailed({'is_active': ['You cannot deactivate your own account.']})
    user.is_active = is_active
    db.session.commit()
    logger.info('User %s set account %s active=%s', actor_user.id, user.id, is_active)
    return user


def pending_residents(actor_user):
    actor = policy.Actor.from_user(actor_user)
    if not policy.can_verify_residents(actor):
        raise Forbidden('You do not have permission to verify residents')
    query = User.query.filter_by(role='resident', verification_status='pending')
    if actor.role == 'municipal_admin':
        query = query.filter(User.municipality_id == actor.municipality_id)
    return query.order_by(User.created_at.asc(), User.id.asc()).all()


def verify_resident(actor_user, user_id, data):
    user = db.session.get(User, user_id)
    if user is None or user.role != 'resident':
        raise NotFound('Resident not found')
    if not policy.can_verify_user(policy.Actor.from_user(actor_user), user):
        raise Forbidden('You do not have permission to verify this resident')

    v = Validator(data)
    status = v.choice('status', ('verified', 'rejected'), required=True)
    notes = v.string('notes')
    v.validate()

    user.verification_status = status
    user.verification_notes = notes
    user.verified_by = actor_user.id
    user.verified_at = datetime.utcnow()
    db.session.commit()
    logger.info('Resident %s marked %s by user %s', user.id, status, actor_user.id)

    mailer.verification_result(user)
    return user


def upload_verification_documents(user, files):
    if user.role != 'resident':
        raise Forbidden('Only residents submit verification documents')
    v = Validator({})
    for field in DOCUMENT_FIELDS:
        file = files.get(field)
        if file is None or not file.filename:
            v.add_error(field, f'The {field} field is required.')
        elif storage.extension(file.filename) not in storage.DOCUMENT_EXTENSIONS:
            v.add_error(field, f"The {field} must be a file of type: {', '.join(sorted(storage.DOCUMENT_EXTENSIONS))}.")
    v.validate()

    documents = {}
    try:
        for field in DOCUMENT_FIELDS:
            documents[field] = storage.save(storage.USER_DOCUMENTS, files[field], prefix=f'verification/{user.id}_')
    except storage.StorageError:
        for key in documents.values():
            storage.delete(key)
        raise

    for key in (user.verification_documents or {}).values():
        storage.delete(key)
    user.verification_documents = documents
    if user.verification_status == 'rejected':
        user.verification_status = 'pending'
    db.session.commit()
    return user


def verification_document(actor_user, user_id, field):
    """Key of a resident's verification document, for the owner or a verifier only."""
    user = db.session.get(User, user_id)
    if user is None or user.role != 'resident' or field not in DOCUMENT_FIELDS:
        raise NotFound('Document not found')
    if actor_user.id != user.id and not policy.can_verify_user(policy.Actor.from_user(actor_user), user):
        raise Forbidden('You do not have permission to view this document')
    key = (user.verification_documents or {}).get(field)
    if not key:
        raise NotFound('Document not found')
    return key
