"""Curated given names and surnames used by the regex name rescue.

Lookup order is significant: the first entry found in the OCR text wins,
so given names come before surnames.
"""

GIVEN_NAMES: tuple[str, ...] = (
    "Siddharth", "Sidharth", "Rahul", "Amit", "Priya", "Neha", "Raj", "Arun",
    "Vijay", "Akshat", "Arjun", "Rohan", "Karan", "Varun", "Nikhil", "Ankit",
    "Mohit", "Rohit", "Deepak", "Suresh", "Ramesh", "Mahesh", "Ganesh",
    "Rajesh", "Mukesh", "Dinesh", "Sanjay", "Ajay", "Ravi", "Sunil", "Anil",
    "Manoj", "Vinod", "Pramod", "Ashok", "Alok", "Vivek", "Abhishek",
    "Manish", "Satish", "Girish", "Harish", "Pankaj", "Neeraj", "Saurabh",
    "Gaurav", "Vishal", "Kunal", "Sumit", "Puneet", "Aarav", "Vihaan",
    "Aditya", "Aryan", "Reyansh", "Ayaan", "Krishna", "Ishaan",
    "Pooja", "Anjali", "Sneha", "Divya", "Kavita", "Sunita", "Anita",
    "Rekha", "Meena", "Seema", "Geeta", "Sita", "Radha", "Lakshmi", "Sarita",
    "Mamta", "Shweta", "Preeti", "Ritu", "Nisha", "Asha", "Usha", "Aadhya",
    "Ananya", "Diya", "Myra", "Sara", "Aanya", "Kiara", "Avni",
)

SURNAMES: tuple[str, ...] = (
    "Kumar", "Singh", "Sharma", "Verma", "Gupta", "Jain", "Agarwal", "Patel",
    "Shah", "Mehta", "Reddy", "Rao", "Nair", "Menon", "Iyer", "Iyengar",
)

NAME_DICTIONARY: tuple[str, ...] = GIVEN_NAMES + SURNAMES
