from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid


class Expense(models.Model):
    """Money one member paid on behalf of the apartment."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    apartment = models.ForeignKey(
        'apartments.Apartment',
        on_delete=models.CASCADE,
        related_name='expenses'
    )
    title = models.CharField(max_length=200)
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    paid_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='expenses_paid'
    )
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='expenses_created'
    )
    date = models.DateField(default=timezone.localdate)
    
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['apartment', 'date'], name='expenses_apartment_date_idx'),
            models.Index(fields=['paid_by'], name='expenses_paid_by_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name='expense_amount_positive'
            ),
        ]
        ordering = ['-date', '-created_at']
    
    def __str__(self):
        return f"{self.title} - {self.amount} ({self.apartment.name})"


class ExpenseSplit(models.Model):
    """One member's share of an expense."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    expense = models.ForeignKey(Expense, on_delete=models.CASCADE, related_name='splits')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='expense_splits')
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    
    class Meta:
        db_table = 'expense_splits'
        unique_together = [['expense', 'user']]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name='expense_split_amount_non_negative'
            ),
        ]
    
    def __str__(self):
        return f"{self.user.get_display_name()} owes {self.amount} for {self.expense.title}"


class Settlement(models.Model):
    """Direct payment from one member to another."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    apartment = models.ForeignKey(
        'apartments.Apartment',
        on_delete=models.CASCADE,
        related_name='settlements'
    )
    from_user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='settlements_paid'
    )
    to_user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='settlements_received'
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    
    class Meta:
        db_table = 'settlements'
        indexes = [
            models.Index(fields=['apartment', 'created_at'], name='settlements_apartment_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name='settlement_amount_positive'
            ),
            models.CheckConstraint(
                condition=~models.Q(from_user=models.F('to_user')),
                name='settlement_distinct_parties'
            ),
        ]
        ordering = ['-created_at']
    
    def __str__(self):
        return f"{self.from_user.get_display_name()} paid {self.to_user.get_display_name()} {self.amount}"
