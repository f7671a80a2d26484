import logging

from flask import Blueprint, current_app, g, jsonify, request

from roster.admission_ledger import AdmissionLedger
from roster.auth import tenant_admin_required
from roster.errors import DeliveryNotConfiguredError
from roster.team_drawer import draw_teams, teams_to_dicts
from roster.whatsapp import WhatsAppClient, build_share_link

logger = logging.getLogger(__name__)

bp = Blueprint('roster', __name__, url_prefix='/api/v1/groups/<subdomain>')


@bp.url_value_preprocessor
def load_tenant(endpoint, values):
    """Resolve the group from the URL and refuse inactive subscriptions."""
    subdomain = values.pop('subdomain')
    g.tenant = current_app.tenants.require_serving(subdomain)


def get_ledger() -> AdmissionLedger:
    return AdmissionLedger(g.tenant.id, policy=current_app.config['ADMISSION_POLICY'])


# --- Routes ---

@bp.route('/roster', methods=['GET'])
def list_roster():
    """Confirmed players and waitlist, in arrival order."""
    return jsonify(get_ledger().list().to_dict())


@bp.route('/roster', methods=['POST'])
def confirm():
    data = request.get_json(silent=True) or {}

    admission = get_ledger().confirm(
        name=data.get('name'),
        category=data.get('category'),
        gender=data.get('gender')
    )

    message = 'Added to the waitlist' if admission.is_waitlisted else 'Attendance confirmed'
    return jsonify({
        'message': message,
        'participant': admission.to_dict()
    }), 201


@bp.route('/roster/<int:participant_id>', methods=['DELETE'])
@tenant_admin_required
def remove(participant_id: int):
    get_ledger().remove(participant_id)
    return jsonify({'message': 'Participant removed', 'id': participant_id})


@bp.route('/roster', methods=['DELETE'])
@tenant_admin_required
def clear():
    deleted = get_ledger().clear()
    return jsonify({'message': 'Roster cleared', 'deleted': deleted})


@bp.route('/draw', methods=['POST'])
@tenant_admin_required
def draw():
    """Draw teams from the current confirmed players."""
    data = request.get_json(silent=True) or {}
    tenant = g.tenant

    confirmed = get_ledger().list().confirmed
    teams = draw_teams(confirmed)
    logger.info("Drew teams for tenant %s from %d players", tenant.id, len(confirmed))

    response = {
        'teams': teams_to_dicts(teams),
        'share_url': build_share_link(teams, tenant.whatsapp_number),
        'delivered': False,
    }

    if data.get('send'):
        if not tenant.whatsapp_number:
            raise DeliveryNotConfiguredError("Group has no WhatsApp number")
        client = WhatsAppClient(
            api_token=tenant.whatsapp_api_token,
            phone_number_id=current_app.config['WHATSAPP_PHONE_NUMBER_ID'],
            base_url=current_app.config['WHATSAPP_API_BASE'],
            timeout=current_app.config['WHATSAPP_TIMEOUT']
        )
        response['message_id'] = client.send_draw(tenant.whatsapp_number, teams)
        response['delivered'] = True

    return jsonify(response)


@bp.route('/stats', methods=['GET'])
@tenant_admin_required
def stats():
    limit = request.args.get('limit', 10, type=int)
    rows = get_ledger().attendance_stats(limit=max(1, min(limit, 100)))
    return jsonify({
        'attendance': [{'name': name, 'count': count} for name, count in rows]
    })
