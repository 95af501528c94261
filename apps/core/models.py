"""
Core Models for MediCRM Django Backend

These are UNMANAGED models that map to existing Supabase PostgreSQL tables.
They do NOT create migrations - Django reads from existing tables.
"""
import uuid

from django.db import models
from django.utils import timezone

from .constants import AUDIT_ACTION_LABELS, PHI_ACCESS_TYPES


class Profile(models.Model):
    """
    Agent profile keyed by the Supabase auth user id.
    Maps to: public.profiles
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    display_name = models.CharField(max_length=255, null=True, blank=True)
    first_name = models.CharField(max_length=255, null=True, blank=True)
    last_name = models.CharField(max_length=255, null=True, blank=True)
    email = models.CharField(max_length=255, null=True, blank=True)
    phone = models.CharField(max_length=50, null=True, blank=True)
    npn = models.CharField(max_length=50, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        managed = False
        db_table = 'profiles'

    def __str__(self):
        return self.name or str(self.id)

    @property
    def name(self) -> str:
        """Display name, falling back to first/last name, then email."""
        if self.display_name:
            return self.display_name
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or (self.email or '')


class Organization(models.Model):
    """
    An agency or sub-agency. Organizations form a forest through
    parent_organization_id; a null parent marks a root agency.
    Maps to: public.organizations
    """
    TYPE_CHOICES = [
        ('agency', 'Agency'),
        ('sub_agency', 'Sub-Agency'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='agency')
    owner = models.ForeignKey(
        Profile,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='owned_organizations',
    )
    parent_organization = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='children',
    )
    logo_url = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        managed = False
        db_table = 'organizations'

    def __str__(self):
        return self.name

    @property
    def is_root(self) -> bool:
        return self.parent_organization_id is None


class OrganizationMember(models.Model):
    """
    Membership of an agent in an organization.
    An agent may belong to several organizations, once per organization.
    Maps to: public.organization_members
    """
    ROLE_CHOICES = [
        ('owner', 'Owner'),
        ('agency', 'Agency'),
        ('agent', 'Agent'),
        ('loa_agent', 'LOA Agent'),
        ('community_agent', 'Community Agent'),
        ('staff', 'Staff'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('removed', 'Removed'),
        ('pending', 'Pending'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='members',
    )
    user = models.ForeignKey(
        Profile,
        on_delete=models.CASCADE,
        related_name='memberships',
    )
    role = models.CharField(max_length=50, choices=ROLE_CHOICES, default='agent')
    has_dashboard_access = models.BooleanField(default=False)
    can_view_agency_book = models.BooleanField(default=False)
    is_producing = models.BooleanField(default=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(default=timezone.now)
    accepted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        managed = False
        db_table = 'organization_members'
        constraints = [
            models.UniqueConstraint(
                fields=['organization', 'user'],
                name='organization_members_org_user_unique',
            ),
        ]

    def __str__(self):
        return f"{self.user_id} in {self.organization_id} ({self.role})"


class OrganizationAuditLog(models.Model):
    """
    Append-only record of membership, invite and creation events.

    performed_by / target_user_id are plain ids rather than foreign keys so
    that entries outlive the profiles they mention.
    Maps to: public.organization_audit_log
    """
    ACTION_CHOICES = list(AUDIT_ACTION_LABELS.items())

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='audit_entries',
    )
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    performed_by = models.UUIDField(null=True, blank=True)
    target_user_id = models.UUIDField(null=True, blank=True)
    details = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        managed = False
        db_table = 'organization_audit_log'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.action} @ {self.created_at:%Y-%m-%d %H:%M}"

    @property
    def action_label(self) -> str:
        return AUDIT_ACTION_LABELS.get(self.action, self.action)

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError('Audit log entries are immutable')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError('Audit log entries cannot be deleted')


class Client(models.Model):
    """
    A lead or client owned by an agent.
    Maps to: public.clients
    """
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('lead', 'Lead'),
        ('inactive', 'Inactive'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    agent = models.ForeignKey(
        Profile,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='clients',
    )
    first_name = models.CharField(max_length=255, null=True, blank=True)
    last_name = models.CharField(max_length=255, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, null=True, blank=True)
    source = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        managed = False
        db_table = 'clients'

    def __str__(self):
        return self.full_name or str(self.id)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class ClientCoverage(models.Model):
    """
    A policy (coverage) held by a client. Only aggregation input here;
    its lifecycle belongs to the client management feature.
    Maps to: public.client_coverages
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    client = models.ForeignKey(
        Client,
        on_delete=models.CASCADE,
        related_name='coverages',
    )
    plan_type = models.CharField(max_length=50, null=True, blank=True)
    carrier = models.CharField(max_length=255, null=True, blank=True)
    plan_name = models.CharField(max_length=255, null=True, blank=True)
    status = models.CharField(max_length=100, null=True, blank=True)
    effective_date = models.DateField(null=True, blank=True)
    application_date = models.DateField(null=True, blank=True)
    member_policy_number = models.CharField(max_length=100, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        managed = False
        db_table = 'client_coverages'

    def __str__(self):
        return f"{self.carrier or ''} {self.plan_name or ''}".strip() or str(self.id)


class PhiAccessLog(models.Model):
    """
    Append-only record of who viewed, exported or changed a client's PHI.

    user_id / client_id are plain ids so that entries outlive the rows they
    mention.
    Maps to: public.phi_access_log
    """
    ACCESS_TYPE_CHOICES = [(access_type, access_type.title()) for access_type in PHI_ACCESS_TYPES]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4)
    user_id = models.UUIDField()
    client_id = models.UUIDField()
    field_accessed = models.CharField(max_length=100)
    access_type = models.CharField(max_length=20, choices=ACCESS_TYPE_CHOICES)
    ip_address = models.CharField(max_length=64, null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        managed = False
        db_table = 'phi_access_log'

    def __str__(self):
        return f"{self.access_type} {self.field_accessed} by {self.user_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError('PHI access log entries are immutable')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError('PHI access log entries cannot be deleted')
