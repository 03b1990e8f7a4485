# ==========================================
# apps/apartments/models.py
# ==========================================

from django.db import models
import uuid


class Apartment(models.Model):
    """Shared household whose members split expenses."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=6, unique=True, editable=False)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='created_apartments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'apartments'
        indexes = [
            models.Index(fields=['created_by', 'created_at'], name='apartments_creator_idx'),
        ]
        ordering = ['-created_at']
    
    def __str__(self):
        return f"{self.name} ({self.code})"
    
    def has_member(self, user):
        return self.memberships.filter(user=user).exists()
    
    def has_member_id(self, user_id):
        return self.memberships.filter(user_id=user_id).exists()
    
    def member_ids(self):
        """User ids of current members, oldest membership first."""
        return list(
            self.memberships.order_by('joined_at').values_list('user_id', flat=True)
        )
    
    def is_creator(self, user):
        return self.created_by_id == user.id


class ApartmentMembership(models.Model):
    """A user's membership in an apartment."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    apartment = models.ForeignKey(Apartment, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='apartment_memberships')
    joined_at = models.DateTimeField(auto_now_add=True)
    
    class Meta:
        db_table = 'apartment_members'
        unique_together = [['apartment', 'user']]
        indexes = [
            models.Index(fields=['user', 'joined_at'], name='apt_members_user_idx'),
        ]
        ordering = ['joined_at']
    
    def __str__(self):
        return f"{self.user.get_display_name()} in {self.apartment.name}"
