from django.db import models


# 간편 회원 (이메일만으로 가입/로그인, 비밀번호 없음)
class SimpleMember(models.Model):
    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    display_name = models.CharField(max_length=200)
    joined_at = models.DateTimeField()
    is_active = models.BooleanField(default=True)
    receive_notifications = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'simple_members'
        ordering = ['-joined_at']

    def __str__(self):
        return f"{self.display_name} <{self.email}>"
