import logging

from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import login_required, current_user

from ..domain.models import Company, Subscription
from ..forms import ConfirmDeleteForm, SubscribeForm
from ..services import ApiError, get_billing_service, get_company_service
from ..services.company_service import company_stats, filter_companies
from ..settings_console import admin_required

logger = logging.getLogger(__name__)

companies_bp = Blueprint('companies', __name__)


def _plan_choices(plans):
    return [(p.id, f"{p.display_name} (${p.monthly_price:,.2f}/mo, ${p.yearly_price:,.2f}/yr)") for p in plans]


@companies_bp.route('/')
@login_required
@admin_required
def list_companies():
    """Company directory with search, subscription status and headline stats."""
    query = request.args.get('q', '').strip()
    companies = []
    subscriptions = {}
    error = None
    try:
        companies = get_company_service().list_companies(current_user.id)
        subscriptions = get_billing_service().get_subscriptions_for(c.id for c in companies)
    except ApiError as e:
        logger.error("Error loading companies for %s: %s", current_user.id, e)
        error = f'Failed to load companies: {e.message}'

    return render_template(
        'companies/list.html',
        title='Companies',
        companies=filter_companies(companies, query),
        subscriptions=subscriptions,
        stats=company_stats(companies, subscriptions),
        query=query,
        error=error,
    )


@companies_bp.route('/<company_id>')
@login_required
@admin_required
def company_detail(company_id):
    company_service = get_company_service()
    billing_service = get_billing_service()
    try:
        response = company_service.get_company_by_id(company_id)
    except ApiError as e:
        if e.status == 404:
            flash('Company not found.', 'error')
        else:
            flash(f'Failed to load company: {e.message}', 'error')
        return redirect(url_for('companies.list_companies'))
    company = Company.from_api(response.data if isinstance(response.data, dict) else {'_id': company_id})

    users = []
    try:
        users_response = company_service.get_company_users(company_id)
        users = users_response.data or []
        if isinstance(users, dict):
            # Grouped as {attorneys: [...], paralegals: [...], clients: [...]}
            users = [u for group in users.values() if isinstance(group, list) for u in group]
    except ApiError:
        flash('Failed to load company users.', 'warning')

    subscription = billing_service.get_subscriptions_for([company_id]).get(company_id)

    form = SubscribeForm()
    plans = []
    try:
        plans = billing_service.list_plans()
    except ApiError:
        flash('Failed to load subscription plans.', 'warning')
    form.plan_id.choices = _plan_choices(plans)

    return render_template(
        'companies/detail.html',
        title=company.name or 'Company',
        company=company,
        users=users,
        subscription=subscription,
        plans=plans,
        subscribe_form=form,
        cancel_form=ConfirmDeleteForm(formdata=None),
    )


@companies_bp.route('/<company_id>/subscribe', methods=['POST'])
@login_required
@admin_required
def subscribe(company_id):
    billing_service = get_billing_service()
    form = SubscribeForm()
    try:
        form.plan_id.choices = _plan_choices(billing_service.list_plans())
    except ApiError as e:
        flash(f'Failed to load subscription plans: {e.message}', 'error')
        return redirect(url_for('companies.company_detail', company_id=company_id))

    if not form.validate_on_submit():
        for field_errors in form.errors.values():
            for message in field_errors:
                flash(message, 'error')
        return redirect(url_for('companies.company_detail', company_id=company_id))

    try:
        response = billing_service.subscribe_to_plan(
            company_id,
            form.plan_id.data,
            form.billing_cycle.data,
            {'type': form.payment_type.data, 'token': form.payment_token.data},
        )
    except ApiError as e:
        flash(f'Subscription failed: {e.message}', 'error')
        return redirect(url_for('companies.company_detail', company_id=company_id))

    if isinstance(response.data, dict):
        subscription = Subscription.from_api(response.data)
        logger.info("Company %s subscribed to plan %s (%s)", company_id, subscription.plan_id, subscription.status)
    flash('Subscription updated.', 'success')
    return redirect(url_for('companies.company_detail', company_id=company_id))


@companies_bp.route('/<company_id>/cancel', methods=['POST'])
@login_required
@admin_required
def cancel(company_id):
    if not ConfirmDeleteForm().validate_on_submit():
        return redirect(url_for('companies.company_detail', company_id=company_id))
    try:
        get_billing_service().cancel_subscription(company_id)
    except ApiError as e:
        flash(f'Failed to cancel subscription: {e.message}', 'error')
    else:
        flash('Subscription cancelled.', 'info')
    return redirect(url_for('companies.company_detail', company_id=company_id))
