# ==============================================================================
# app/store.py
# ------------------------------------------------------------------------------
# Persistence for clients and applications, scoped to one office.
# The store assigns ids and timestamps, and notifies subscribers after every
# successful write. Subscribers recompute derived fields themselves.
# ==============================================================================

import logging
from datetime import date, datetime

from app import db
from app.models import Application, Client
from app.calculator.deadline import derive_application_view
from app.calculator.schema import (APPLICATION_FIELDS, BACKUP_VERSION, CLIENT_FIELDS, DATE_FIELDS)

# --- Change notifications ---

_subscribers = []


class Subscription:
    """Handle returned by `subscribe`. Call `cancel()` to stop receiving events."""

    def __init__(self, callback):
        self.callback = callback
        self.active = True

    def cancel(self):
        if self.active:
            self.active = False
            _subscribers.remove(self)


def subscribe(callback):
    """
    Registers `callback(event, office_id, record_id)`. Events are
    'client_created', 'client_updated', 'client_deleted', 'application_created',
    'application_updated', 'application_deleted' and 'data_replaced'.
    """
    subscription = Subscription(callback)
    _subscribers.append(subscription)
    return subscription


def _notify(event, office_id, record_id=None):
    for subscription in list(_subscribers):
        try:
            subscription.callback(event, office_id, record_id)
        except Exception as e:
            logging.error(f"Change subscriber failed on '{event}': {e}", exc_info=True)


# --- Clients ---

def list_clients(office_id):
    return Client.query.filter_by(office_id=office_id).order_by(Client.created_at).all()


def get_client(office_id, client_id):
    return Client.query.filter_by(office_id=office_id, id=client_id).first()


def create_client(office_id, **data):
    client = Client(office_id=office_id, **data)
    db.session.add(client)
    db.session.commit()
    logging.info(f"Client created: {client.id} ({client.company_name})")
    _notify('client_created', office_id, client.id)
    return client


def update_client(office_id, client_id, **changes):
    client = get_client(office_id, client_id)
    if client is None:
        return None
    for key, value in changes.items():
        setattr(client, key, value)
    client.updated_at = datetime.utcnow()
    db.session.commit()
    _notify('client_updated', office_id, client.id)
    return client


def delete_client(office_id, client_id):
    """Deletes the client together with all of its applications."""
    client = get_client(office_id, client_id)
    if client is None:
        return False
    db.session.delete(client)
    db.session.commit()
    logging.info(f"Client deleted with its applications: {client_id}")
    _notify('client_deleted', office_id, client_id)
    return True


# --- Applications ---

def list_applications(office_id, client_id=None):
    query = Application.query.filter_by(office_id=office_id)
    if client_id:
        query = query.filter_by(client_id=client_id)
    return query.order_by(Application.application_deadline).all()


def get_application(office_id, application_id):
    return Application.query.filter_by(office_id=office_id, id=application_id).first()


def list_application_views(office_id, now=None, client_id=None):
    """
    Applications paired with their derived fields, sorted by days remaining.

    Returns:
        list: dicts with 'record' (the Application) plus the keys of derive_application_view.
    """
    now = now or datetime.now()
    views = []
    for application in list_applications(office_id, client_id):
        view = derive_application_view(application, now)
        view['record'] = application
        views.append(view)
    views.sort(key=lambda v: v['daysRemaining'])
    return views


def create_application(office_id, **data):
    client = get_client(office_id, data.get('client_id'))
    if client is None:
        raise ValueError(f"Unknown client for office {office_id}: {data.get('client_id')}")
    application = Application(office_id=office_id, **data)
    db.session.add(application)
    db.session.commit()
    logging.info(f"Application created: {application.id} ({application.worker_name})")
    _notify('application_created', office_id, application.id)
    return application


def update_application(office_id, application_id, **changes):
    application = get_application(office_id, application_id)
    if application is None:
        return None
    for key, value in changes.items():
        setattr(application, key, value)
    application.updated_at = datetime.utcnow()
    db.session.commit()
    _notify('application_updated', office_id, application.id)
    return application


def delete_application(office_id, application_id):
    application = get_application(office_id, application_id)
    if application is None:
        return False
    db.session.delete(application)
    db.session.commit()
    _notify('application_deleted', office_id, application_id)
    return True


# --- Export / import ---

def _to_json_value(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _serialize(record, field_map):
    item = {key: _to_json_value(getattr(record, attr)) for key, attr in field_map.items()}
    item['createdAt'] = _to_json_value(record.created_at)
    item['updatedAt'] = _to_json_value(record.updated_at)
    return item


def export_data(office_id):
    """Builds the JSON backup document for one office."""
    applications = []
    for application in list_applications(office_id):
        item = _serialize(application, APPLICATION_FIELDS)
        item['estimatedAmount'] = {
            'phase1': application.estimated_phase1 or 0,
            'phase2': application.estimated_phase2 or 0,
            'total': application.estimated_total or 0,
        }
        applications.append(item)
    return {
        'version': BACKUP_VERSION,
        'exportedAt': datetime.utcnow().isoformat(),
        'officeId': office_id,
        'clients': [_serialize(client, CLIENT_FIELDS) for client in list_clients(office_id)],
        'applications': applications,
    }


def _deserialize(item, field_map):
    values = {}
    for key, attr in field_map.items():
        if key not in item:
            continue
        value = item[key]
        if attr in DATE_FIELDS and value:
            value = date.fromisoformat(str(value)[:10])
        elif attr in DATE_FIELDS:
            value = None
        values[attr] = value
    return values


def import_data(office_id, payload):
    """
    Replaces all of the office's clients and applications with the contents of
    a backup document (already checked by validate_backup_document).
    Derived fields in the file are ignored. Runs in a single transaction.

    Returns:
        dict: {'clients': int, 'applications': int}
    """
    try:
        Application.query.filter_by(office_id=office_id).delete()
        Client.query.filter_by(office_id=office_id).delete()

        for item in payload['clients']:
            values = _deserialize(item, CLIENT_FIELDS)
            values['is_small_business'] = values.get('is_small_business') is not False
            values['has_employment_rules'] = bool(values.get('has_employment_rules'))
            db.session.add(Client(office_id=office_id, **values))

        for item in payload['applications']:
            values = _deserialize(item, APPLICATION_FIELDS)
            amount = item.get('estimatedAmount') or {}
            values['estimated_phase1'] = amount.get('phase1', 0)
            values['estimated_phase2'] = amount.get('phase2', 0)
            values['estimated_total'] = amount.get('total', 0)
            values['status'] = values.get('status') or 'preparing'
            values['conversion_type'] = values.get('conversion_type') or 'fixed_to_regular'
            values['is_priority_target'] = bool(values.get('is_priority_target'))
            db.session.add(Application(office_id=office_id, **values))

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    counts = {'clients': len(payload['clients']), 'applications': len(payload['applications'])}
    logging.info(f"Imported backup for office {office_id}: {counts}")
    _notify('data_replaced', office_id)
    return counts


def clear_data(office_id):
    """Deletes every client and application of the office."""
    return import_data(office_id, {'clients': [], 'applications': []})
