from flask_wtf import FlaskForm
from flask_wtf.file import MultipleFileField
from wtforms import (StringField, PasswordField, BooleanField, SubmitField, TextAreaField, IntegerField,
                     SelectField, HiddenField, DateField)
from wtforms.validators import DataRequired, Email, Length, ValidationError, Optional, NumberRange, URL
import pytz

from .domain.models import BillingCycle, FoiaStatus, RoleType


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])
    remember_me = BooleanField('Remember Me')
    submit = SubmitField('Sign In')


# ---------------------------------------------------------------------------
# Intake wizard
# ---------------------------------------------------------------------------

class WizardNavForm(FlaskForm):
    """Back / Next buttons shared by every step."""
    back = SubmitField('Back')
    next = SubmitField('Next')


class ToggleFormForm(FlaskForm):
    form_id = HiddenField(validators=[DataRequired()])


class CategoryChoiceForm(FlaskForm):
    category_id = HiddenField()
    subcategory_id = HiddenField()

    def validate_subcategory_id(self, field):
        if not self.category_id.data and not field.data:
            raise ValidationError('Choose a category or subcategory.')


class ClientSelectForm(FlaskForm):
    client_id = HiddenField(validators=[DataRequired()])
    client_name = HiddenField()


class ClientCreationForm(FlaskForm):
    first_name = StringField('First Name', validators=[DataRequired(), Length(max=100)])
    last_name = StringField('Last Name', validators=[DataRequired(), Length(max=100)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    phone = StringField('Phone', validators=[DataRequired(), Length(max=30)])
    date_of_birth = DateField('Date of Birth', validators=[DataRequired()])
    nationality = StringField('Nationality', validators=[DataRequired(), Length(max=100)])
    street = StringField('Street', validators=[DataRequired()])
    city = StringField('City', validators=[DataRequired()])
    state = StringField('State', validators=[DataRequired()])
    zip_code = StringField('ZIP Code', validators=[DataRequired(), Length(max=20)])
    country = StringField('Country', validators=[DataRequired()])
    submit = SubmitField('Create Client')


FOIA_STATUS_CHOICES = [
    (FoiaStatus.PENDING.value, 'Pending'),
    (FoiaStatus.SUBMITTED.value, 'Submitted'),
    (FoiaStatus.RECEIVED.value, 'Received'),
    (FoiaStatus.NOT_REQUIRED.value, 'Not Required'),
]


class FoiaRequirementForm(FlaskForm):
    foia_required = SelectField('Is a FOIA request required?', choices=[('yes', 'Yes'), ('no', 'No')],
                                validators=[DataRequired()])
    foia_status = SelectField('FOIA Status', choices=FOIA_STATUS_CHOICES, validators=[Optional()])
    submit = SubmitField('Save')


class FormTypeSelectForm(FlaskForm):
    category_id = HiddenField(validators=[DataRequired()])
    type_id = HiddenField(validators=[DataRequired()])


class CaseCreationForm(FlaskForm):
    case_number = StringField('Case Number', validators=[DataRequired(), Length(max=64)])
    priority_date = DateField('Priority Date', validators=[DataRequired()])
    assigned_staff = StringField('Assigned Staff', validators=[DataRequired(), Length(max=120)])
    case_notes = TextAreaField('Case Notes', validators=[DataRequired(), Length(max=5000)])
    generate = SubmitField('Generate')
    submit = SubmitField('Save Case Details')

    def validate_case_number(self, field):
        if field.data and ' ' in field.data.strip():
            raise ValidationError('Case numbers cannot contain spaces.')


class DocumentUploadForm(FlaskForm):
    files = MultipleFileField('Documents')
    submit = SubmitField('Add Documents')


class ItemActionForm(FlaskForm):
    """Single-item action (upload, remove, process, retry)."""
    item_id = HiddenField()


class SubmitCaseForm(FlaskForm):
    submit = SubmitField('Submit Case')


# ---------------------------------------------------------------------------
# Settings console
# ---------------------------------------------------------------------------

class ProfileSettingsForm(FlaskForm):
    first_name = StringField('First Name', validators=[DataRequired(), Length(max=100)])
    last_name = StringField('Last Name', validators=[DataRequired(), Length(max=100)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    job_title = StringField('Job Title', validators=[Optional(), Length(max=100)])
    bio = TextAreaField('Bio', validators=[Optional(), Length(max=1000)])
    submit = SubmitField('Save Changes')


class OrganizationSettingsForm(FlaskForm):
    name = StringField('Organization Name', validators=[DataRequired(), Length(max=200)])
    email = StringField('Email', validators=[Optional(), Email()])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    website = StringField('Website', validators=[Optional(), URL()])
    street = StringField('Street', validators=[Optional()])
    city = StringField('City', validators=[Optional()])
    state = StringField('State', validators=[Optional()])
    zip_code = StringField('ZIP Code', validators=[Optional(), Length(max=20)])
    country = StringField('Country', validators=[Optional()])
    license_number = StringField('License Number', validators=[Optional()])
    tax_id = StringField('Tax ID', validators=[Optional()])
    submit = SubmitField('Save Changes')


class NotificationSettingsForm(FlaskForm):
    email_notifications = BooleanField('Email notifications')
    sms_notifications = BooleanField('SMS notifications')
    case_updates = BooleanField('Case status updates')
    document_uploads = BooleanField('New document uploads')
    deadline_reminders = BooleanField('Deadline reminders')
    billing_alerts = BooleanField('Billing alerts')
    submit = SubmitField('Save Changes')


class SecuritySettingsForm(FlaskForm):
    two_factor_enabled = BooleanField('Require two-factor authentication')
    session_timeout = IntegerField('Session timeout (minutes)', validators=[Optional(), NumberRange(min=5, max=1440)],
                                   default=30)
    password_expiry_days = IntegerField('Password expiry (days)', validators=[Optional(), NumberRange(min=0, max=365)],
                                        default=90)
    login_notifications = BooleanField('Notify on new sign-in')
    submit = SubmitField('Save Changes')


class EmailSettingsForm(FlaskForm):
    smtp_host = StringField('SMTP Host', validators=[Optional()])
    smtp_port = IntegerField('SMTP Port', validators=[Optional(), NumberRange(min=1, max=65535)], default=587)
    smtp_username = StringField('SMTP Username', validators=[Optional()])
    smtp_password = PasswordField('SMTP Password', validators=[Optional()])
    from_email = StringField('From Email', validators=[Optional(), Email()])
    from_name = StringField('From Name', validators=[Optional()])
    use_tls = BooleanField('Use TLS', default=True)
    submit = SubmitField('Save Changes')


class IntegrationSettingsForm(FlaskForm):
    calendar_provider = SelectField('Calendar', choices=[('none', 'None'), ('google', 'Google Calendar'),
                                                          ('outlook', 'Outlook')], default='none')
    storage_provider = SelectField('Document Storage', choices=[('local', 'Local'), ('s3', 'Amazon S3'),
                                                                 ('dropbox', 'Dropbox')], default='local')
    uscis_case_status_enabled = BooleanField('USCIS case status lookups')
    webhook_url = StringField('Webhook URL', validators=[Optional(), URL()])
    submit = SubmitField('Save Changes')


class BillingSettingsForm(FlaskForm):
    billing_email = StringField('Billing Email', validators=[Optional(), Email()])
    billing_cycle = SelectField('Billing Cycle', choices=[(c.value, c.value.title()) for c in BillingCycle],
                                default=BillingCycle.MONTHLY.value)
    auto_renew = BooleanField('Auto-renew subscription')
    payment_method_type = SelectField('Payment Method', choices=[('card', 'Credit Card'), ('ach', 'Bank Transfer')],
                                      default='card')
    submit = SubmitField('Save Changes')


class UserManagementSettingsForm(FlaskForm):
    default_role = SelectField('Default Role', choices=[('paralegal', 'Paralegal'), ('attorney', 'Attorney'),
                                                        ('client', 'Client')], default='client')
    allow_self_registration = BooleanField('Allow client self-registration')
    max_users = IntegerField('Maximum users', validators=[Optional(), NumberRange(min=1)])
    submit = SubmitField('Save Changes')


class CaseSettingsForm(FlaskForm):
    case_number_prefix = StringField('Case Number Prefix', validators=[Optional(), Length(max=10)], default='CASE')
    default_priority = SelectField('Default Priority', choices=[('low', 'Low'), ('medium', 'Medium'),
                                                                ('high', 'High')], default='medium')
    auto_assign = BooleanField('Auto-assign new cases')
    reminder_days = IntegerField('Deadline reminder (days before)', validators=[Optional(), NumberRange(min=0, max=90)],
                                 default=7)
    submit = SubmitField('Save Changes')


class FormTemplateSettingsForm(FlaskForm):
    default_template = StringField('Default Template', validators=[Optional()])
    auto_fill_enabled = BooleanField('Auto-fill forms from client data')
    require_review = BooleanField('Require attorney review before filing')
    submit = SubmitField('Save Changes')


class ReportSettingsForm(FlaskForm):
    default_format = SelectField('Default Format', choices=[('pdf', 'PDF'), ('csv', 'CSV'), ('xlsx', 'Excel')],
                                 default='pdf')
    schedule = SelectField('Schedule', choices=[('none', 'Manual'), ('daily', 'Daily'), ('weekly', 'Weekly'),
                                                ('monthly', 'Monthly')], default='none')
    recipients = TextAreaField('Recipients (one per line)', validators=[Optional()])
    submit = SubmitField('Save Changes')


class DatabaseSettingsForm(FlaskForm):
    host = StringField('Host', validators=[DataRequired()], default='localhost')
    port = IntegerField('Port', validators=[DataRequired(), NumberRange(min=1, max=65535)], default=5432)
    database_name = StringField('Database Name', validators=[DataRequired()], default='immigration_db')
    schema = StringField('Schema', validators=[DataRequired()], default='public')
    backup_schedule = SelectField('Backup Schedule', choices=[('daily', 'Daily'), ('weekly', 'Weekly'),
                                                              ('monthly', 'Monthly')], default='daily')
    retention_days = IntegerField('Retention Period (days)', validators=[Optional(), NumberRange(min=1, max=3650)],
                                  default=30)
    compression = BooleanField('Enable backup compression')
    pool_size = IntegerField('Connection Pool Size', validators=[Optional(), NumberRange(min=1, max=500)], default=10)
    connection_timeout = IntegerField('Connection Timeout (seconds)',
                                      validators=[Optional(), NumberRange(min=1, max=600)], default=30)
    query_cache = BooleanField('Enable query cache')
    submit = SubmitField('Save Changes')


class SystemSettingsForm(FlaskForm):
    maintenance_mode = BooleanField('Maintenance mode')
    timezone = SelectField('Timezone', choices=[(tz, tz) for tz in pytz.common_timezones], default='UTC')
    date_format = SelectField('Date Format', choices=[('MM/DD/YYYY', 'MM/DD/YYYY'), ('DD/MM/YYYY', 'DD/MM/YYYY'),
                                                      ('YYYY-MM-DD', 'YYYY-MM-DD')], default='MM/DD/YYYY')
    max_upload_mb = IntegerField('Max upload size (MB)', validators=[Optional(), NumberRange(min=1, max=100)],
                                 default=10)
    submit = SubmitField('Save Changes')


class BackupSettingsForm(FlaskForm):
    schedule = SelectField('Backup Schedule', choices=[('daily', 'Daily'), ('weekly', 'Weekly'),
                                                       ('monthly', 'Monthly')], default='daily')
    retention_days = IntegerField('Retention (days)', validators=[Optional(), NumberRange(min=1, max=3650)],
                                  default=30)
    storage_location = SelectField('Storage', choices=[('local', 'Local disk'), ('s3', 'Amazon S3')],
                                   default='local')
    encrypt = BooleanField('Encrypt backups')
    submit = SubmitField('Save Changes')


class ApiSettingsForm(FlaskForm):
    rate_limit = IntegerField('Requests per minute per IP', validators=[Optional(), NumberRange(min=1)], default=100)
    burst_limit = IntegerField('Burst limit', validators=[Optional(), NumberRange(min=1)], default=200)
    webhook_url = StringField('Webhook URL', validators=[Optional(), URL()])
    webhook_events = StringField('Webhook events (comma separated)', validators=[Optional()])
    cors_origins = TextAreaField('Allowed origins (one per line)', validators=[Optional()])
    cors_allow_credentials = BooleanField('Allow credentials')
    submit = SubmitField('Save Changes')

    def validate_burst_limit(self, field):
        if field.data and self.rate_limit.data and field.data < self.rate_limit.data:
            raise ValidationError('Burst limit must be at least the per-minute rate limit.')


class PerformanceSettingsForm(FlaskForm):
    cache_enabled = BooleanField('Enable response caching')
    cache_ttl = IntegerField('Cache TTL (seconds)', validators=[Optional(), NumberRange(min=1)], default=300)
    monitoring_enabled = BooleanField('Enable performance monitoring')
    slow_query_threshold_ms = IntegerField('Slow query threshold (ms)', validators=[Optional(), NumberRange(min=1)],
                                           default=500)
    submit = SubmitField('Save Changes')


class RoleForm(FlaskForm):
    name = StringField('Role Name', validators=[DataRequired(), Length(max=60)])
    type = SelectField('Role Type', choices=[(t.value, t.value.replace('_', ' ').title()) for t in RoleType],
                       validators=[DataRequired()])
    description = TextAreaField('Description', validators=[Optional(), Length(max=500)])
    is_default = BooleanField('Default role for new users')
    submit = SubmitField('Save Role')


class ConfirmDeleteForm(FlaskForm):
    confirm = SubmitField('Delete')


class SubscribeForm(FlaskForm):
    plan_id = SelectField('Plan', validators=[DataRequired()], choices=[])
    billing_cycle = SelectField('Billing Cycle', choices=[(c.value, c.value.title()) for c in BillingCycle],
                                default=BillingCycle.MONTHLY.value)
    payment_type = SelectField('Payment Method', choices=[('card', 'Credit Card'), ('ach', 'Bank Transfer')],
                               default='card')
    payment_token = StringField('Payment Token', validators=[DataRequired()])
    submit = SubmitField('Subscribe')
