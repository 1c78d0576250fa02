from flask import Blueprint, current_app, jsonify, request

from forest import auth
from forest.errors import ValidationError
from forest.store import open_store
from forest.trees import parse_purchase

bp = Blueprint('forest', __name__, url_prefix='/api/forest')

PUBLIC_ENDPOINTS = {'forest.login', 'forest.check_session'}


def _connect():
    return current_app.extensions['forest']['connect']


def _now():
    return current_app.extensions['forest']['clock']()


def _json_body():
    if not request.get_data():
        return {}
    body = request.get_json(force=True, silent=True)
    if body is None:
        raise ValidationError('Invalid JSON in request body')
    return body


@bp.before_request
def require_login():
    if request.method == 'OPTIONS' or request.endpoint in PUBLIC_ENDPOINTS:
        return
    auth.require_auth()


@bp.route('', methods=['GET', 'POST', 'OPTIONS'], provide_automatic_options=False)
def forest():
    if request.method == 'OPTIONS':
        return '', 204

    with open_store(_connect()) as store:
        store.init_schema()
        now = _now()
        store.mature_trees(now)

        if request.method == 'POST':
            tree_type, growth_hours = parse_purchase(_json_body())
            store.purchase_tree(
                tree_type,
                growth_hours,
                now,
                cost=current_app.config['FOREST_TREE_COST'],
                baseline_policy=current_app.config['FOREST_NEGATIVE_BASELINE'],
            )

        trees = store.list_trees()
    return jsonify([tree.to_dict() for tree in trees])


@bp.route('/balance', methods=['GET'])
def balance():
    with open_store(_connect()) as store:
        state = store.require_user_state()
    payload = state.balance(_now()).to_dict()
    payload['treeCost'] = current_app.config['FOREST_TREE_COST']
    return jsonify(payload)


@bp.route('/login', methods=['POST'])
def login():
    body = _json_body()
    auth.login(body.get('password') if isinstance(body, dict) else None)
    return jsonify(success=True)


@bp.route('/logout', methods=['POST'])
def logout():
    auth.logout()
    return jsonify(success=True)


@bp.route('/session', methods=['GET'])
def check_session():
    return jsonify(authenticated=auth.is_authenticated())
